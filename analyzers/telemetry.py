"""
Parse telemetry - reports how model responses were parsed.

Successful parses are sampled; fallbacks and errors are always reported.
Delivery is best effort and runs on background threads, so a slow or dead
telemetry endpoint never holds up the analysis.
"""

import random
import threading
from concurrent.futures import ThreadPoolExecutor, Future, wait
from dataclasses import dataclass
from typing import Optional, Callable, Dict, Any, List

from config import PARSE_TELEMETRY_SAMPLE_RATE, PARSE_TELEMETRY_MAX_WORKERS
from shared_utils import logger, dict_without_none


PARSE_SUCCESS = 'parse_success'
PARSE_FALLBACK = 'parse_fallback'
PARSE_ERROR = 'parse_error'
API_ERROR = 'api_error'

STAGE_ANALYZE = 'analyze_event'
STAGE_REPAIR = 'repair_missing_fields'
STAGE_PRECHECK = 'precheck_event'

# Shared by every reporter; threads are started lazily on first submit
_delivery_executor = ThreadPoolExecutor(max_workers=PARSE_TELEMETRY_MAX_WORKERS,
                                        thread_name_prefix='parse-telemetry')


@dataclass
class ParseContext:
    """Where a model call happened, attached to every telemetry payload."""
    stage: str = STAGE_ANALYZE
    page_url: Optional[str] = None
    page_title: Optional[str] = None

    def for_stage(self, stage: str) -> 'ParseContext':
        return ParseContext(stage=stage, page_url=self.page_url, page_title=self.page_title)


class TelemetryReporter:
    """
    Builds parse telemetry payloads and hands them to a transport.

    The transport is any object with a save_parse_telemetry(payload) method,
    normally the BackendAPIClient. Without one, payloads are only logged.
    Payloads are delivered on a background executor; flush() waits for them.
    """

    def __init__(self, transport=None, sample_rate: float = PARSE_TELEMETRY_SAMPLE_RATE,
                 random_func: Callable[[], float] = random.random,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.transport = transport
        self.sample_rate = sample_rate
        self.random_func = random_func
        self.executor = executor or _delivery_executor
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def should_sample(self) -> bool:
        return self.random_func() < self.sample_rate

    def report(self, status: str, context: Optional[ParseContext] = None,
               error_message: Optional[str] = None,
               finish_reason: Optional[str] = None,
               sample_reason: Optional[str] = None,
               raw_response_text: Optional[str] = None,
               recovered_json_text: Optional[str] = None,
               parsed_event_name: Optional[str] = None,
               parsed_start_date: Optional[str] = None) -> bool:
        """
        Queue one telemetry payload for delivery.

        Returns:
            True if the payload was queued, False when there is no transport
        """
        context = context or ParseContext()
        payload = dict_without_none({
            'stage': context.stage,
            'status': status,
            'pageUrl': context.page_url,
            'pageTitle': context.page_title,
            'errorMessage': error_message,
            'finishReason': finish_reason,
            'sampleReason': sample_reason,
            'rawResponseText': raw_response_text,
            'recoveredJsonText': recovered_json_text,
            'parsedEventName': parsed_event_name,
            'parsedStartDate': parsed_start_date,
        })

        logger.log("debug", "Parse telemetry", stage=payload['stage'], status=status,
                   sample_reason=sample_reason)

        if self.transport is None:
            return False

        try:
            future = self.executor.submit(self._deliver, payload)
        except RuntimeError as e:
            # Executor already shut down at interpreter exit
            logger.log("warning", f"Parse telemetry not queued: {str(e)}", status=status)
            return False

        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)
        return True

    def _deliver(self, payload: Dict[str, Any]) -> bool:
        try:
            return bool(self.transport.save_parse_telemetry(payload))
        except Exception as e:
            logger.log("warning", f"Failed to report parse telemetry: {str(e)}", status=payload.get('status'))
            return False

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for queued payloads to be delivered or dropped.

        Returns:
            True if nothing is left pending
        """
        with self._lock:
            pending, self._pending = self._pending, []

        _, not_done = wait(pending, timeout=timeout)
        if not_done:
            logger.log("warning", "Parse telemetry still pending after flush", pending=len(not_done))
            with self._lock:
                self._pending.extend(not_done)
        return not not_done
