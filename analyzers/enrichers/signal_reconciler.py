"""
Signal Reconciler - merges a parsed EventRecord with scraped page signals.

For every field the first non-empty candidate wins, with the model's own
value always first. Known values are never overwritten, so reconciling an
already reconciled record changes nothing.
"""

from typing import List, Optional

from config import DEFAULT_EVENT_NAME, DESCRIPTION_FALLBACK_CHARS
from event_models import EventRecord, PageSignals, Person, Sponsor
from shared_utils import DateParser, pick_first_non_empty, get_host_from_url, unique_by_key, logger

from .page_evidence import (
    find_structured_event, format_structured_location, strip_title_suffix,
    extract_dates_from_text, extract_attendee_count, split_title_and_company, directory_by_name
)
from .personas import derive_personas, default_next_best_actions


class SignalReconciler:
    """Backfills an EventRecord from PageSignals under a fixed precedence."""

    def reconcile(self, record: EventRecord, signals: PageSignals) -> EventRecord:
        """
        Return a new, reconciled record. The input record is not modified.

        Args:
            record: Record projected from the model response
            signals: Evidence scraped from the page

        Returns:
            EventRecord with every backfillable field filled
        """
        result = record.copy()
        structured = find_structured_event(signals.structured_data) or {}
        meta = signals.meta or {}
        main_text = signals.main_text or ''

        model_name = result.event_name if result.has_event_name() else None
        result.event_name = pick_first_non_empty(
            model_name,
            structured.get('name'),
            meta.get('og:title'),
            strip_title_suffix(signals.title),
        ) or DEFAULT_EVENT_NAME

        result.description = pick_first_non_empty(
            result.description,
            structured.get('description'),
            meta.get('og:description'),
            meta.get('description'),
            main_text[:DESCRIPTION_FALLBACK_CHARS],
        )

        self._reconcile_dates(result, structured, main_text)

        if not result.date:
            if result.start_date and result.end_date and result.start_date != result.end_date:
                result.date = f"{result.start_date} to {result.end_date}"
            else:
                result.date = result.start_date

        result.location = pick_first_non_empty(
            result.location,
            format_structured_location(structured.get('location')),
        )

        if result.estimated_attendees is None:
            result.estimated_attendees = extract_attendee_count(main_text)

        result.people = self._reconcile_people(result.people, signals)

        if not result.sponsors:
            result.sponsors = unique_by_key(
                [Sponsor(name=name) for name in signals.sponsor_candidates], lambda s: s.name
            )

        if not result.expected_personas:
            result.expected_personas = derive_personas(result.people)

        if not result.next_best_actions:
            name = result.event_name if result.has_event_name() else None
            result.next_best_actions = default_next_best_actions(name)

        # The host name is the location of last resort
        if not result.location:
            result.location = get_host_from_url(signals.url)

        return result

    def _reconcile_dates(self, result: EventRecord, structured: dict, main_text: str):
        start, end = result.start_date, result.end_date
        text_start, text_end = (None, None)
        if not (start and end):
            text_start, text_end = extract_dates_from_text(main_text)

        start_candidates = [DateParser.format_to_iso(structured.get('startDate')), text_start]
        end_candidates = [DateParser.format_to_iso(structured.get('endDate')), text_end]

        if not start:
            start = self._first_ordered(start_candidates, lambda c: not end or c <= end)
        if not end:
            end = self._first_ordered(end_candidates, lambda c: not start or c >= start)

        result.start_date = start or end
        result.end_date = end or start

    @staticmethod
    def _first_ordered(candidates: List[Optional[str]], keeps_order) -> Optional[str]:
        for candidate in candidates:
            if not candidate:
                continue
            if keeps_order(candidate):
                return candidate
            logger.log("info", "Rejected backfilled date that breaks start/end ordering", date=candidate)
        return None

    def _reconcile_people(self, people: List[Person], signals: PageSignals) -> List[Person]:
        if not people:
            synthesized = []
            for entry in directory_by_name(signals.speaker_directory).values():
                title, company = split_title_and_company(entry.context)
                synthesized.append(Person(name=entry.name, role='Speaker', title=title, company=company))
            return synthesized

        directory = directory_by_name(signals.speaker_directory)
        enriched = []
        for person in people:
            entry = directory.get(person.name.strip().lower())
            if entry is not None:
                title, company = split_title_and_company(entry.context)
                person.title = person.title or title
                person.company = person.company or company
                person.role = person.role or 'Speaker'
            enriched.append(person)
        return enriched


def reconcile(record: EventRecord, signals: PageSignals) -> EventRecord:
    return SignalReconciler().reconcile(record, signals)
