"""
Backend API client - model proxy, host parsing profiles and parse telemetry.

All calls go through the shared HTTPClient session (GETs retried on 5xx,
POSTs sent once) and authenticate with a bearer token.
"""

from typing import Dict, Any, Optional

import requests

from analyzers.exceptions import ModelAPIError
from config import (
    API_BASE_URL, API_BEARER_TOKEN, API_GENERATE_PATH, API_PARSING_PROFILE_PATH,
    API_PARSE_TELEMETRY_PATH, HTTP_TIMEOUT_SHORT, HTTP_TIMEOUT_LONG,
    MODEL_TEMPERATURE, MODEL_MAX_TOKENS
)
from event_models import ModelResponse
from shared_utils import HTTPClient, logger


RATE_LIMIT_MESSAGE = 'Rate limit exceeded. Please wait a moment and try again.'
INVALID_KEY_MESSAGE = 'Server model API key is invalid or expired. Please renew the backend key.'


class BackendAPIClient:
    """Thin wrapper over the analyzer backend endpoints."""

    def __init__(self, base_url: Optional[str] = None, bearer_token: Optional[str] = None,
                 http_client: Optional[HTTPClient] = None):
        self.base_url = (base_url or API_BASE_URL).rstrip('/')
        self.bearer_token = bearer_token if bearer_token is not None else API_BEARER_TOKEN
        self.http = http_client or HTTPClient()

    def is_configured(self) -> bool:
        return bool(self.bearer_token)

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.bearer_token:
            headers['Authorization'] = f'Bearer {self.bearer_token}'
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def generate(self, prompt: str, temperature: float = MODEL_TEMPERATURE,
                 max_tokens: int = MODEL_MAX_TOKENS) -> ModelResponse:
        """
        Send a prompt to the model proxy.

        Returns:
            ModelResponse with the generated text and finish reason

        Raises:
            ModelAPIError: on transport failure or a non-2xx status
        """
        payload = {'prompt': prompt, 'temperature': temperature, 'maxTokens': max_tokens}

        try:
            response = self.http.post(self._url(API_GENERATE_PATH), json=payload,
                                      headers=self._headers(), timeout=HTTP_TIMEOUT_LONG)
        except requests.RequestException as e:
            raise ModelAPIError(f"Model request failed: {str(e)}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            error_message = str(data.get('error') or data.get('message') or response.reason or response.status_code)
            if response.status_code == 429:
                raise ModelAPIError(RATE_LIMIT_MESSAGE, status_code=429, raw_response=response.text)
            if response.status_code == 400 and 'api key' in error_message.lower():
                raise ModelAPIError(INVALID_KEY_MESSAGE, status_code=400, raw_response=response.text)
            raise ModelAPIError(f"API error: {error_message}", status_code=response.status_code,
                                raw_response=response.text)

        text = data.get('text') if isinstance(data.get('text'), str) else ''
        finish_reason = data.get('finishReason') if isinstance(data.get('finishReason'), str) else None
        return ModelResponse(text=text, finish_reason=finish_reason)

    def get_parsing_profile(self, page_url: str) -> Optional[Dict[str, Any]]:
        """Fetch the learned parsing profile for a page's host. Raises on HTTP errors."""
        response = self.http.get(self._url(API_PARSING_PROFILE_PATH), params={'url': page_url},
                                 headers=self._headers(), timeout=HTTP_TIMEOUT_SHORT)
        response.raise_for_status()
        data = response.json()
        if isinstance(data, dict) and isinstance(data.get('profile'), dict):
            data = data['profile']
        return data if isinstance(data, dict) and data else None

    def save_parse_telemetry(self, payload: Dict[str, Any]) -> bool:
        if not self.is_configured():
            return False
        response = self.http.post(self._url(API_PARSE_TELEMETRY_PATH), json=payload,
                                  headers=self._headers(), timeout=HTTP_TIMEOUT_SHORT)
        response.raise_for_status()
        logger.log("debug", "Parse telemetry delivered", status=payload.get('status'))
        return True
