"""Anthropic messages provider."""

from typing import Any, Dict, Optional, Tuple

from raju import config
from .base import RemoteProvider, RequestSpec


class AnthropicProvider(RemoteProvider):
    """Anthropic (Claude) provider."""

    name = "anthropic"
    display_name = "Anthropic"

    def default_base_url(self) -> str:
        return config.ANTHROPIC_BASE_URL

    @property
    def default_model(self) -> str:
        return config.ANTHROPIC_MODEL

    def _auth_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": config.ANTHROPIC_VERSION,
        }

    def build_completion_request(self, prompt: str, api_key: str, model: str) -> RequestSpec:
        url = f"{self.base_url}/v1/messages"
        headers = {"Content-Type": "application/json", **self._auth_headers(api_key)}
        payload = {
            "model": model,
            "max_tokens": config.ANTHROPIC_MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        return url, headers, payload

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return data["content"][0]["text"]

    def build_models_request(self, api_key: str) -> Tuple[str, Dict[str, str]]:
        return f"{self.base_url}/v1/models", self._auth_headers(api_key)
