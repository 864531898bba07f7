"""
Field repair - one bounded re-query to fill required fields still missing
after reconciliation.
"""

from typing import List, Callable

from analyzers.exceptions import RepairNoProgress, ModelAPIError, NoUsableSignal, BlockedBySafetyFilter
from analyzers.parsers.response_parser import ResponseParser
from analyzers.prompts import PromptBuilder
from analyzers.telemetry import TelemetryReporter, ParseContext, PARSE_SUCCESS, PARSE_ERROR, STAGE_REPAIR
from event_models import EventRecord, PageSignals, ModelResponse
from shared_utils import logger


SCALAR_REQUIRED = ['eventName', 'startDate', 'endDate', 'location', 'description']
COLLECTION_REQUIRED = ['people', 'sponsors', 'expectedPersonas', 'nextBestActions']

# Scalars the patch may fill; canonical name -> attribute
PATCHABLE_SCALARS = {
    'eventName': 'event_name',
    'date': 'date',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'location': 'location',
    'description': 'description',
    'estimatedAttendees': 'estimated_attendees',
}

PATCHABLE_COLLECTIONS = ['people', 'sponsors', 'expected_personas', 'next_best_actions']

# Failures whose telemetry was sent before they reach the repairer
ALREADY_REPORTED = (ModelAPIError, NoUsableSignal, BlockedBySafetyFilter)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(record: EventRecord) -> List[str]:
    """Canonical names of required fields that are still unsatisfied, in schema order."""
    missing = []
    if not record.has_event_name():
        missing.append('eventName')
    for name, value in [('startDate', record.start_date), ('endDate', record.end_date),
                        ('location', record.location), ('description', record.description)]:
        if _is_blank(value):
            missing.append(name)
    for name, items in [('people', record.people), ('sponsors', record.sponsors),
                        ('expectedPersonas', record.expected_personas),
                        ('nextBestActions', record.next_best_actions)]:
        if not items:
            missing.append(name)
    return missing


def merge_patch(record: EventRecord, patch: EventRecord) -> EventRecord:
    """
    Fill gaps in record from patch without touching known values.

    Scalars are taken only where the record is missing them; a collection is
    replaced wholesale, and only by a non-empty patch collection. Related
    events always stay as the record has them.
    """
    merged = record.copy()

    for canonical, attribute in PATCHABLE_SCALARS.items():
        if canonical == 'eventName':
            if not merged.has_event_name() and patch.has_event_name():
                merged.event_name = patch.event_name
            continue
        if _is_blank(getattr(merged, attribute)) and not _is_blank(getattr(patch, attribute)):
            setattr(merged, attribute, getattr(patch, attribute))

    for attribute in PATCHABLE_COLLECTIONS:
        patch_items = getattr(patch, attribute)
        if patch_items:
            setattr(merged, attribute, list(patch_items))

    return merged


class FieldRepairer:
    """
    Runs the single repair cycle.

    Args:
        requery: callable(prompt, context) -> ModelResponse that performs the second model call
                 and reports its own api_error telemetry
        parser: ResponseParser used on the repair response
        prompts: PromptBuilder for the repair prompt
        telemetry: reporter for the repair outcome
    """

    def __init__(self, requery: Callable[[str, ParseContext], ModelResponse],
                 parser: ResponseParser, prompts: PromptBuilder, telemetry: TelemetryReporter):
        self.requery = requery
        self.parser = parser
        self.prompts = prompts
        self.telemetry = telemetry

    def repair(self, record: EventRecord, signals: PageSignals, context: ParseContext) -> EventRecord:
        missing_before = missing_fields(record)
        if not missing_before:
            return record

        context = context.for_stage(STAGE_REPAIR)
        logger.log("info", "Repairing missing fields", fields=",".join(missing_before), url=context.page_url)

        try:
            prompt = self.prompts.build_repair_prompt(missing_before, record, signals)
            response = self.requery(prompt, context)
            patch = self.parser.parse(response, context)
        except ALREADY_REPORTED as e:
            # The requery reports api_error and the parser reports parse_error
            failure = RepairNoProgress(len(missing_before), reason=str(e))
            logger.log("warning", str(failure), url=context.page_url)
            return record
        except Exception as e:
            failure = RepairNoProgress(len(missing_before), reason=str(e))
            logger.log("warning", str(failure), url=context.page_url)
            self.telemetry.report(PARSE_ERROR, context, error_message=str(e))
            return record

        merged = merge_patch(record, patch)
        missing_after = missing_fields(merged)

        if len(missing_after) < len(missing_before):
            self.telemetry.report(
                PARSE_SUCCESS, context,
                sample_reason=f"missing_before:{len(missing_before)}_after:{len(missing_after)}",
            )
            logger.log("info", "Field repair accepted", missing_before=len(missing_before),
                       missing_after=len(missing_after))
            return merged

        failure = RepairNoProgress(len(missing_before), len(missing_after))
        logger.log("warning", str(failure), url=context.page_url)
        self.telemetry.report(
            PARSE_ERROR, context,
            error_message=str(failure),
            sample_reason=f"missing_before:{len(missing_before)}_after:{len(missing_after)}",
        )
        return record
