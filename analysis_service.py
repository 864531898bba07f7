"""
Event Analysis Service - orchestrates one page analysis.

Runs the model call, response parsing, related-event provenance check,
reconciliation with page signals, the single field-repair cycle and final
normalization. Also offers the lightweight "is this an event page" pre-check.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional, Union

from analyzers.clients.backend_api import BackendAPIClient
from analyzers.clients.model_client import ModelClient, get_model_client
from analyzers.config_loader import AnalysisSettings, load_settings
from analyzers.enrichers.provenance import filter_related_events
from analyzers.enrichers.signal_reconciler import SignalReconciler
from analyzers.exceptions import ModelAPIError, StructuralDecodeFailure
from analyzers.field_repair import FieldRepairer
from analyzers.host_profiles import HostProfileCache
from analyzers.parsers.recovery_parser import JsonRecoveryParser
from analyzers.parsers.response_parser import ResponseParser
from analyzers.prompts import PromptBuilder, UserProfile
from analyzers.telemetry import TelemetryReporter, ParseContext, API_ERROR, STAGE_ANALYZE, STAGE_PRECHECK
from config import FINISH_REASON_SAFETY
from event_models import EventRecord, PageSignals, ModelResponse
from shared_utils import logger, clean_string


@dataclass
class PrecheckResult:
    """Classifier verdict on whether a page is dedicated to one event."""
    is_event: bool = False
    confidence: str = 'low'
    event_name: Optional[str] = None
    event_date: Optional[str] = None
    event_location: Optional[str] = None
    event_id: Optional[str] = None

    @classmethod
    def from_response(cls, response: ModelResponse) -> 'PrecheckResult':
        """Any unusable reply means "not an event, low confidence"."""
        if (response.finish_reason or '').upper() == FINISH_REASON_SAFETY:
            return cls()
        try:
            data = JsonRecoveryParser().recover(response.text).document
        except StructuralDecodeFailure as e:
            logger.log("warning", f"Error parsing pre-check response: {str(e)}")
            return cls()

        return cls(
            is_event=data.get('isEvent') is True,
            confidence=clean_string(data.get('confidence')) or 'low',
            event_name=clean_string(data.get('eventName')),
            event_date=clean_string(data.get('eventDate')),
            event_location=clean_string(data.get('eventLocation')),
            event_id=clean_string(data.get('eventId')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isEvent': self.is_event,
            'confidence': self.confidence,
            'eventName': self.event_name,
            'eventDate': self.event_date,
            'eventLocation': self.event_location,
            'eventId': self.event_id,
        }


class EventAnalysisService:
    """
    Service layer for event page analysis.

    Collaborators are injectable; anything not supplied is built from the
    loaded AnalysisSettings.
    """

    def __init__(self, model_client: Optional[ModelClient] = None,
                 settings: Optional[AnalysisSettings] = None,
                 backend: Optional[BackendAPIClient] = None,
                 telemetry: Optional[TelemetryReporter] = None,
                 host_profiles: Optional[HostProfileCache] = None,
                 user_profile: Optional[UserProfile] = None):
        self.settings = settings or load_settings()
        self.backend = backend or BackendAPIClient(base_url=self.settings.api_base_url)
        self.model_client = model_client or get_model_client(
            self.settings.model_provider, self.settings.openai_model, self.backend
        )
        self.telemetry = telemetry or TelemetryReporter(self.backend, sample_rate=self.settings.telemetry_sample_rate)
        self.host_profiles = host_profiles or HostProfileCache(self.backend)
        self.prompts = PromptBuilder(
            self.host_profiles, user_profile or UserProfile.from_dict(self.settings.user_profile)
        )
        self.parser = ResponseParser(self.telemetry)
        self.reconciler = SignalReconciler()
        self.repairer = FieldRepairer(self._call_model, self.parser, self.prompts, self.telemetry)

    def analyze(self, signals: Union[PageSignals, Dict[str, Any]]) -> EventRecord:
        """
        Analyze one page.

        Args:
            signals: PageSignals, or the raw scraper payload

        Returns:
            Final, normalized EventRecord

        Raises:
            BlockedBySafetyFilter: the model refused the page
            NoUsableSignal: the response held no event fields at all
            ModelAPIError: the model call itself failed
        """
        if not isinstance(signals, PageSignals):
            signals = PageSignals.from_dict(signals)

        context = ParseContext(stage=STAGE_ANALYZE, page_url=signals.url, page_title=signals.title)
        logger.log("info", "Analyzing event page", url=signals.url)

        prompt = self.prompts.build_analysis_prompt(signals)
        response = self._call_model(prompt, context)
        return self.analyze_response(response, signals, context)

    def analyze_response(self, response: ModelResponse, signals: PageSignals,
                         context: Optional[ParseContext] = None) -> EventRecord:
        """Run everything after the first model call on an already obtained response."""
        context = context or ParseContext(stage=STAGE_ANALYZE, page_url=signals.url, page_title=signals.title)

        record = self.parser.parse(response, context)
        record = filter_related_events(record, signals)
        record = self.reconciler.reconcile(record, signals)

        if self.settings.repair_enabled:
            record = self.repairer.repair(record, signals, context)

        final = record.normalized()
        logger.log("info", "Event analysis complete", event=final.event_name,
                   people=len(final.people), sponsors=len(final.sponsors))
        return final

    def precheck(self, signals: Union[PageSignals, Dict[str, Any]]) -> PrecheckResult:
        """Ask the model whether the page is dedicated to a single event."""
        if not isinstance(signals, PageSignals):
            signals = PageSignals.from_dict(signals)

        context = ParseContext(stage=STAGE_PRECHECK, page_url=signals.url, page_title=signals.title)
        prompt = self.prompts.build_precheck_prompt(signals)
        response = self._call_model(prompt, context, max_tokens=self.settings.precheck_max_tokens)
        return PrecheckResult.from_response(response)

    def _call_model(self, prompt: str, context: ParseContext, max_tokens: Optional[int] = None) -> ModelResponse:
        try:
            return self.model_client.generate(
                prompt,
                temperature=self.settings.temperature,
                max_tokens=max_tokens or self.settings.max_tokens,
            )
        except ModelAPIError as e:
            logger.log("error", f"Model call failed: {str(e)}", stage=context.stage, status=e.status_code)
            self.telemetry.report(API_ERROR, context, error_message=str(e),
                                  raw_response_text=e.raw_response or None)
            raise


# Global service instance
_analysis_service = None


def get_analysis_service(model_client: Optional[ModelClient] = None) -> EventAnalysisService:
    """Get the global analysis service instance."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = EventAnalysisService(model_client)
    return _analysis_service
