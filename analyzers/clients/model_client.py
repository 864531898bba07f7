"""
Model clients - send a prompt, get back raw text plus a finish reason.

The analysis pipeline treats the model as an external collaborator; every
client here returns a ModelResponse and raises ModelAPIError when no text
could be obtained.
"""

import os
from typing import List, Optional, Union

import openai
from openai import OpenAI

from analyzers.clients.backend_api import BackendAPIClient, RATE_LIMIT_MESSAGE
from analyzers.exceptions import ModelAPIError, ConfigurationError
from config import (
    MODEL_PROVIDER, GPT_MODEL_STANDARD, MODEL_TEMPERATURE, MODEL_MAX_TOKENS,
    FINISH_REASON_STOP, FINISH_REASON_MAX_TOKENS, FINISH_REASON_SAFETY
)
from event_models import ModelResponse
from shared_utils import logger


# OpenAI finish_reason -> pipeline finish reason
OPENAI_FINISH_REASONS = {
    'stop': FINISH_REASON_STOP,
    'length': FINISH_REASON_MAX_TOKENS,
    'content_filter': FINISH_REASON_SAFETY,
}


class ModelClient:
    """Interface for prompt -> ModelResponse callers."""

    def generate(self, prompt: str, temperature: float = MODEL_TEMPERATURE,
                 max_tokens: int = MODEL_MAX_TOKENS) -> ModelResponse:
        raise NotImplementedError


class BackendModelClient(ModelClient):
    """Calls the model through the backend proxy."""

    def __init__(self, api: Optional[BackendAPIClient] = None):
        self.api = api or BackendAPIClient()

    def generate(self, prompt: str, temperature: float = MODEL_TEMPERATURE,
                 max_tokens: int = MODEL_MAX_TOKENS) -> ModelResponse:
        return self.api.generate(prompt, temperature=temperature, max_tokens=max_tokens)


class OpenAIModelClient(ModelClient):
    """Calls OpenAI chat completions directly."""

    def __init__(self, client: Optional[OpenAI] = None, model: str = GPT_MODEL_STANDARD):
        if client is None:
            api_key = os.getenv('OPENAI_API_KEY')
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY is required for the openai model provider")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model

    def generate(self, prompt: str, temperature: float = MODEL_TEMPERATURE,
                 max_tokens: int = MODEL_MAX_TOKENS) -> ModelResponse:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature
            )
        except openai.RateLimitError as e:
            raise ModelAPIError(RATE_LIMIT_MESSAGE, status_code=429, raw_response=str(e))
        except openai.AuthenticationError as e:
            raise ModelAPIError("OpenAI API key is invalid or expired.", status_code=401, raw_response=str(e))
        except openai.APIError as e:
            raise ModelAPIError(f"API error: {str(e)}", status_code=getattr(e, 'status_code', None))

        if not response.choices:
            raise ModelAPIError("Empty OpenAI response")

        choice = response.choices[0]
        text = (choice.message.content or '') if choice.message else ''
        finish_reason = OPENAI_FINISH_REASONS.get(choice.finish_reason, choice.finish_reason)
        return ModelResponse(text=text, finish_reason=finish_reason)


class StubModelClient(ModelClient):
    """
    Offline client returning canned responses in order.
    The last response repeats once the list is exhausted.
    """

    def __init__(self, responses: Optional[List[Union[ModelResponse, str]]] = None):
        responses = responses or [ModelResponse(text='{}', finish_reason=FINISH_REASON_STOP)]
        self.responses = [
            r if isinstance(r, ModelResponse) else ModelResponse(text=r, finish_reason=FINISH_REASON_STOP)
            for r in responses
        ]
        self.prompts: List[str] = []

    def generate(self, prompt: str, temperature: float = MODEL_TEMPERATURE,
                 max_tokens: int = MODEL_MAX_TOKENS) -> ModelResponse:
        index = min(len(self.prompts), len(self.responses) - 1)
        self.prompts.append(prompt)
        return self.responses[index]

    @property
    def call_count(self) -> int:
        return len(self.prompts)


class ReplayModelClient(StubModelClient):
    """Replays model responses previously saved to text files."""

    @classmethod
    def from_files(cls, paths: List[str], finish_reason: Optional[str] = FINISH_REASON_STOP) -> 'ReplayModelClient':
        responses = []
        for path in paths:
            with open(path, 'r', encoding='utf-8') as f:
                responses.append(ModelResponse(text=f.read(), finish_reason=finish_reason))
        return cls(responses)


def get_model_client(provider: Optional[str] = None, openai_model: str = GPT_MODEL_STANDARD,
                     backend: Optional[BackendAPIClient] = None) -> ModelClient:
    """
    Pick a model client from the environment.

    USE_STUB forces the offline stub; otherwise MODEL_PROVIDER selects
    'backend' (default), 'openai' or 'stub'.
    """
    if os.getenv('USE_STUB', '').strip().lower() in ('1', 'true', 'yes'):
        logger.log("info", "Using stub model client")
        return StubModelClient()

    provider = (provider or MODEL_PROVIDER or 'backend').strip().lower()
    if provider == 'stub':
        return StubModelClient()
    if provider == 'openai':
        return OpenAIModelClient(model=openai_model)
    if provider == 'backend':
        return BackendModelClient(backend)
    raise ConfigurationError(f"Unknown model provider: {provider}")
