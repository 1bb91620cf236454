"""OpenAI chat-completions provider."""

from typing import Any, Dict, Optional, Tuple

from raju import config
from .base import RemoteProvider, RequestSpec


class OpenAIProvider(RemoteProvider):
    """OpenAI (GPT) provider."""

    name = "openai"
    display_name = "OpenAI"

    def default_base_url(self) -> str:
        return config.OPENAI_BASE_URL

    @property
    def default_model(self) -> str:
        return config.OPENAI_MODEL

    def build_completion_request(self, prompt: str, api_key: str, model: str) -> RequestSpec:
        url = f"{self.base_url}/v1/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": config.OPENAI_TEMPERATURE,
            "max_tokens": config.OPENAI_MAX_TOKENS,
        }
        return url, headers, payload

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return data["choices"][0]["message"]["content"]

    def build_models_request(self, api_key: str) -> Tuple[str, Dict[str, str]]:
        return f"{self.base_url}/v1/models", {"Authorization": f"Bearer {api_key}"}
