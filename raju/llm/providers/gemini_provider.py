"""Google Gemini generateContent provider."""

from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from raju import config
from .base import RemoteProvider, RequestSpec


class GeminiProvider(RemoteProvider):
    """Google Gemini provider. The API key travels as a query parameter."""

    name = "gemini"
    display_name = "Gemini"

    def default_base_url(self) -> str:
        return config.GEMINI_BASE_URL

    @property
    def default_model(self) -> str:
        return config.GEMINI_MODEL

    def build_completion_request(self, prompt: str, api_key: str, model: str) -> RequestSpec:
        url = f"{self.base_url}/v1/models/{quote(model, safe='')}:generateContent?key={quote(api_key, safe='')}"
        headers = {"Content-Type": "application/json"}
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        return url, headers, payload

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return data["candidates"][0]["content"]["parts"][0]["text"]

    def build_models_request(self, api_key: str) -> Tuple[str, Dict[str, str]]:
        return f"{self.base_url}/v1/models?key={quote(api_key, safe='')}", {}
