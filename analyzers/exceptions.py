"""
Error taxonomy for the event analysis pipeline.

Only NoUsableSignal, BlockedBySafetyFilter and ModelAPIError end an analysis.
StructuralDecodeFailure escalates to the fallback extractor and
RepairNoProgress is logged and absorbed.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for analysis pipeline errors."""
    pass


class StructuralDecodeFailure(AnalysisError):
    """Raised when recovered text still cannot be decoded into a document."""

    def __init__(self, message: str, recovered_text: str = ''):
        super().__init__(message)
        self.recovered_text = recovered_text


class NoUsableSignal(AnalysisError):
    """Raised when neither decoding nor fallback extraction found event fields."""

    USER_MESSAGE = 'Failed to parse event data. The page might not be an event page.'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.USER_MESSAGE)


class BlockedBySafetyFilter(AnalysisError):
    """Raised when the model response was stopped by a safety filter."""

    USER_MESSAGE = 'Response blocked by safety filters. Try a different page.'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.USER_MESSAGE)


class RepairNoProgress(AnalysisError):
    """Raised when a repair re-query did not reduce the missing field set."""

    def __init__(self, missing_before: int, missing_after: Optional[int] = None, reason: str = ''):
        detail = reason or f"missing fields {missing_before} -> {missing_after}"
        super().__init__(f"Field repair made no progress: {detail}")
        self.missing_before = missing_before
        self.missing_after = missing_after


class ModelAPIError(AnalysisError):
    """Raised when the model caller fails before returning any text."""

    def __init__(self, message: str, status_code: Optional[int] = None, raw_response: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.raw_response = raw_response


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass
