"""
Clients for the model and the analyzer backend.
"""

from .backend_api import BackendAPIClient
from .model_client import (
    ModelClient,
    BackendModelClient,
    OpenAIModelClient,
    StubModelClient,
    ReplayModelClient,
    get_model_client
)

__all__ = [
    'BackendAPIClient',
    'ModelClient',
    'BackendModelClient',
    'OpenAIModelClient',
    'StubModelClient',
    'ReplayModelClient',
    'get_model_client'
]
