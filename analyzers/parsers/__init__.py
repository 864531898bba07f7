"""
Model response parsers.
"""

from .recovery_parser import JsonRecoveryParser, RecoveryResult, recover_document
from .fallback_extractor import FallbackFieldExtractor
from .response_parser import ResponseParser

__all__ = [
    'JsonRecoveryParser',
    'RecoveryResult',
    'recover_document',
    'FallbackFieldExtractor',
    'ResponseParser'
]
