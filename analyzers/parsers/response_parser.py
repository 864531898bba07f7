"""
Response parser - turns one ModelResponse into an EventRecord.

Handles the caller-reported finish reason, escalates from the recovery
parser to the fallback extractor and decides which telemetry to emit.
"""

from typing import Optional

from analyzers.exceptions import StructuralDecodeFailure, NoUsableSignal, BlockedBySafetyFilter
from analyzers.parsers.recovery_parser import JsonRecoveryParser
from analyzers.parsers.fallback_extractor import FallbackFieldExtractor
from analyzers.telemetry import (
    TelemetryReporter, ParseContext, PARSE_SUCCESS, PARSE_FALLBACK, PARSE_ERROR
)
from config import FINISH_REASON_STOP, FINISH_REASON_MAX_TOKENS, FINISH_REASON_SAFETY
from event_models import EventRecord, ModelResponse
from shared_utils import logger


class ResponseParser:
    """Parses model responses into EventRecords."""

    def __init__(self, telemetry: Optional[TelemetryReporter] = None,
                 recovery: Optional[JsonRecoveryParser] = None,
                 fallback: Optional[FallbackFieldExtractor] = None):
        self.telemetry = telemetry or TelemetryReporter()
        self.recovery = recovery or JsonRecoveryParser()
        self.fallback = fallback or FallbackFieldExtractor()

    def parse(self, response: ModelResponse, context: Optional[ParseContext] = None) -> EventRecord:
        """
        Parse a model response.

        Args:
            response: Raw model text and finish reason
            context: Stage and page identity for telemetry

        Returns:
            Projected EventRecord, or the minimal fallback record

        Raises:
            BlockedBySafetyFilter: the model stopped on a safety filter
            NoUsableSignal: neither decoding nor fallback found event fields
        """
        context = context or ParseContext()
        finish_reason = (response.finish_reason or '').strip().upper() or None
        raw_text = response.text or ''

        if finish_reason == FINISH_REASON_SAFETY:
            self.telemetry.report(
                PARSE_ERROR, context,
                error_message=BlockedBySafetyFilter.USER_MESSAGE,
                finish_reason=finish_reason,
                sample_reason='safety_block',
            )
            raise BlockedBySafetyFilter()

        if finish_reason and finish_reason != FINISH_REASON_STOP:
            logger.log("warning", "Unusual finish reason", finish_reason=finish_reason, stage=context.stage)

        try:
            result = self.recovery.recover(raw_text, expect_truncation=finish_reason == FINISH_REASON_MAX_TOKENS)
        except StructuralDecodeFailure as e:
            return self._parse_with_fallback(e, raw_text, finish_reason, context)

        record = EventRecord.from_document(result.document)

        if self.telemetry.should_sample():
            self.telemetry.report(
                PARSE_SUCCESS, context,
                finish_reason=finish_reason,
                sample_reason='success_sample',
                raw_response_text=raw_text,
                recovered_json_text=result.recovered_text,
                parsed_event_name=record.event_name,
                parsed_start_date=record.start_date,
            )

        return record

    def _parse_with_fallback(self, failure: StructuralDecodeFailure, raw_text: str,
                             finish_reason: Optional[str], context: ParseContext) -> EventRecord:
        best_effort = failure.recovered_text or raw_text
        logger.log("warning", f"Structured decode failed: {str(failure)}", stage=context.stage)

        try:
            record = self.fallback.extract(best_effort)
        except NoUsableSignal:
            self.telemetry.report(
                PARSE_ERROR, context,
                error_message=str(failure),
                finish_reason=finish_reason,
                sample_reason='parse_failure',
                raw_response_text=raw_text,
                recovered_json_text=failure.recovered_text or None,
            )
            raise

        self.telemetry.report(
            PARSE_FALLBACK, context,
            error_message=str(failure),
            finish_reason=finish_reason,
            sample_reason='fallback',
            raw_response_text=raw_text,
            recovered_json_text=failure.recovered_text or None,
            parsed_event_name=record.event_name,
            parsed_start_date=record.start_date,
        )
        return record
