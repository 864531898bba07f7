"""
Analyzers package - Recovery and reconciliation of model-generated event data.

Model output is recovered into a JSON document (parsers), reconciled with
scraped page signals (enrichers) and, when required fields are still
missing, repaired with one additional model call (field_repair).
"""

from .exceptions import (
    AnalysisError,
    StructuralDecodeFailure,
    NoUsableSignal,
    BlockedBySafetyFilter,
    RepairNoProgress,
    ModelAPIError,
    ConfigurationError
)

__all__ = [
    'AnalysisError',
    'StructuralDecodeFailure',
    'NoUsableSignal',
    'BlockedBySafetyFilter',
    'RepairNoProgress',
    'ModelAPIError',
    'ConfigurationError'
]
