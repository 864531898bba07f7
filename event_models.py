"""
Event data models for page analysis.

EventRecord is the canonical output entity. Model output arrives as an untyped
JSON tree and is projected into these dataclasses by EventRecord.from_document,
which never raises: absent or wrong-typed values simply become absent.
"""

import copy
import math
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

from config import (
    DEFAULT_EVENT_NAME, MAX_MAIN_TEXT_CHARS, MAX_HTML_CHARS, MAX_SESSION_BLOCKS,
    MAX_SPEAKER_DIRECTORY, MAX_SPONSOR_CANDIDATES
)
from shared_utils import DateParser, clean_string, unique_by_key


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _loose_string(value: Any) -> Optional[str]:
    """Like clean_string but also accepts numbers (e.g. a persona count of 50)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return clean_string(value)


def coerce_non_negative_int(value: Any) -> Optional[int]:
    """Integers, integral floats and digit strings ("1,200") become ints; anything else is absent."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if math.isfinite(value) and value >= 0 and value == int(value):
            return int(value)
        return None
    if isinstance(value, str):
        digits = value.strip().replace(',', '')
        if digits.isdigit():
            return int(digits)
    return None


@dataclass
class Person:
    """Someone named on the event page."""
    name: str
    role: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    persona: Optional[str] = None
    linkedin: Optional[str] = None
    linkedin_message: Optional[str] = None
    ice_breaker: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional['Person']:
        if isinstance(value, str):
            name = clean_string(value)
            return cls(name=name) if name else None
        if not isinstance(value, dict):
            return None
        name = clean_string(value.get('name'))
        if not name:
            return None
        return cls(
            name=name,
            role=clean_string(value.get('role')),
            title=clean_string(value.get('title')),
            company=clean_string(value.get('company')),
            persona=clean_string(value.get('persona')),
            linkedin=clean_string(value.get('linkedin')),
            linkedin_message=clean_string(value.get('linkedinMessage')),
            ice_breaker=clean_string(value.get('iceBreaker')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'role': self.role,
            'title': self.title,
            'company': self.company,
            'persona': self.persona,
            'linkedin': self.linkedin,
            'linkedinMessage': self.linkedin_message,
            'iceBreaker': self.ice_breaker,
        }


@dataclass
class Sponsor:
    name: str
    tier: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional['Sponsor']:
        if isinstance(value, str):
            name = clean_string(value)
            return cls(name=name) if name else None
        if not isinstance(value, dict):
            return None
        name = clean_string(value.get('name'))
        if not name:
            return None
        return cls(name=name, tier=_loose_string(value.get('tier')))

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'tier': self.tier}


@dataclass
class ExpectedPersona:
    """A role category likely to attend, with outreach copy."""
    persona: str
    likelihood: Optional[str] = None
    count: Optional[str] = None
    linkedin_message: Optional[str] = None
    ice_breaker: Optional[str] = None
    conversation_starters: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    pain_points: List[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> Optional['ExpectedPersona']:
        if isinstance(value, str):
            label = clean_string(value)
            return cls(persona=label) if label else None
        if not isinstance(value, dict):
            return None
        label = clean_string(value.get('persona'))
        if not label:
            return None
        return cls(
            persona=label,
            likelihood=clean_string(value.get('likelihood')),
            count=_loose_string(value.get('count')),
            linkedin_message=clean_string(value.get('linkedinMessage')),
            ice_breaker=clean_string(value.get('iceBreaker')),
            conversation_starters=_string_list(value.get('conversationStarters')),
            keywords=_string_list(value.get('keywords')),
            pain_points=_string_list(value.get('painPoints')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'persona': self.persona,
            'likelihood': self.likelihood,
            'count': self.count,
            'linkedinMessage': self.linkedin_message,
            'iceBreaker': self.ice_breaker,
            'conversationStarters': list(self.conversation_starters),
            'keywords': list(self.keywords),
            'painPoints': list(self.pain_points),
        }


@dataclass
class NextBestAction:
    priority: int
    action: str
    reason: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any, position: int = 1) -> Optional['NextBestAction']:
        if not isinstance(value, dict):
            return None
        action = clean_string(value.get('action'))
        if not action:
            return None
        priority = coerce_non_negative_int(value.get('priority'))
        return cls(
            priority=priority if priority is not None else position,
            action=action,
            reason=clean_string(value.get('reason')) or clean_string(value.get('rationale')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'priority': self.priority, 'action': self.action, 'reason': self.reason}


@dataclass
class RelatedEvent:
    """Another event linked from the page. The url is its identity."""
    url: str
    name: Optional[str] = None
    date: Optional[str] = None
    relevance: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional['RelatedEvent']:
        if not isinstance(value, dict):
            return None
        url = clean_string(value.get('url'))
        if not url:
            return None
        return cls(
            url=url,
            name=clean_string(value.get('name')),
            date=clean_string(value.get('date')),
            relevance=clean_string(value.get('relevance')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'url': self.url, 'date': self.date, 'relevance': self.relevance}


# Canonical field name -> EventRecord attribute
SCALAR_FIELDS = {
    'eventName': 'event_name',
    'date': 'date',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'location': 'location',
    'description': 'description',
    'estimatedAttendees': 'estimated_attendees',
}

COLLECTION_FIELDS = {
    'people': 'people',
    'sponsors': 'sponsors',
    'expectedPersonas': 'expected_personas',
    'nextBestActions': 'next_best_actions',
    'relatedEvents': 'related_events',
}


def _project_list(value: Any, factory, key_func) -> list:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        projected = factory(item)
        if projected is not None:
            items.append(projected)
    return unique_by_key(items, key_func)


def _project_actions(value: Any) -> List[NextBestAction]:
    if not isinstance(value, list):
        return []
    actions = []
    for position, item in enumerate(value, 1):
        action = NextBestAction.from_value(item, position)
        if action is not None:
            actions.append(action)
    return unique_by_key(actions, lambda a: a.action)


def order_date_pair(start_date: Optional[str], end_date: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """ISO strings compare chronologically; an end before the start collapses onto the start."""
    if start_date and end_date and end_date < start_date:
        return start_date, start_date
    return start_date, end_date


@dataclass
class EventRecord:
    """Canonical event record produced by one page analysis."""
    event_name: str = DEFAULT_EVENT_NAME
    date: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    estimated_attendees: Optional[int] = None
    people: List[Person] = field(default_factory=list)
    sponsors: List[Sponsor] = field(default_factory=list)
    expected_personas: List[ExpectedPersona] = field(default_factory=list)
    next_best_actions: List[NextBestAction] = field(default_factory=list)
    related_events: List[RelatedEvent] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: Any) -> 'EventRecord':
        """
        Project an untyped document into an EventRecord.

        Dates are normalized to ISO here so that later stages only ever
        backfill; unparseable dates are treated as absent.
        """
        if not isinstance(document, dict):
            return cls()

        people_value = document.get('people')
        if not isinstance(people_value, list):
            people_value = document.get('speakers')

        start_date, end_date = order_date_pair(
            DateParser.format_to_iso(document.get('startDate')),
            DateParser.format_to_iso(document.get('endDate')),
        )

        return cls(
            event_name=clean_string(document.get('eventName')) or DEFAULT_EVENT_NAME,
            date=clean_string(document.get('date')),
            start_date=start_date,
            end_date=end_date,
            location=clean_string(document.get('location')),
            description=clean_string(document.get('description')),
            estimated_attendees=coerce_non_negative_int(document.get('estimatedAttendees')),
            people=_project_list(people_value, Person.from_value, lambda p: p.name),
            sponsors=_project_list(document.get('sponsors'), Sponsor.from_value, lambda s: s.name),
            expected_personas=_project_list(
                document.get('expectedPersonas'), ExpectedPersona.from_value, lambda p: p.persona
            ),
            next_best_actions=_project_actions(document.get('nextBestActions')),
            related_events=_project_list(document.get('relatedEvents'), RelatedEvent.from_value, lambda r: r.url),
        )

    def has_event_name(self) -> bool:
        return bool(self.event_name and self.event_name.strip()) and self.event_name.strip() != DEFAULT_EVENT_NAME

    def copy(self) -> 'EventRecord':
        return copy.deepcopy(self)

    def normalized(self) -> 'EventRecord':
        """Final shape: trimmed name, ordered and mirrored dates, attendee count as a non-negative int."""
        result = self.copy()
        result.event_name = clean_string(result.event_name) or DEFAULT_EVENT_NAME
        start = DateParser.format_to_iso(result.start_date)
        end = DateParser.format_to_iso(result.end_date)
        start, end = order_date_pair(start or end, end or start)
        result.start_date, result.end_date = start, end
        result.estimated_attendees = coerce_non_negative_int(result.estimated_attendees)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            'eventName': self.event_name,
            'date': self.date,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'location': self.location,
            'description': self.description,
            'estimatedAttendees': self.estimated_attendees,
            'people': [p.to_dict() for p in self.people],
            'sponsors': [s.to_dict() for s in self.sponsors],
            'expectedPersonas': [p.to_dict() for p in self.expected_personas],
            'nextBestActions': [a.to_dict() for a in self.next_best_actions],
            'relatedEvents': [r.to_dict() for r in self.related_events],
        }


@dataclass(frozen=True)
class SessionBlock:
    title: str
    time: Optional[str] = None
    speakers_text: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'time': self.time,
            'speakersText': self.speakers_text,
            'location': self.location,
            'description': self.description,
        }


@dataclass(frozen=True)
class SpeakerDirectoryEntry:
    name: str
    profile_url: Optional[str] = None
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'profileUrl': self.profile_url, 'context': self.context}


@dataclass(frozen=True)
class PageSignals:
    """
    Evidence harvested from the page by the scraper.
    Read-only for the duration of an analysis.
    """
    url: Optional[str] = None
    title: Optional[str] = None
    meta: Dict[str, str] = field(default_factory=dict)
    structured_data: Tuple[Dict[str, Any], ...] = ()
    main_text: str = ''
    html: str = ''
    session_blocks: Tuple[SessionBlock, ...] = ()
    speaker_directory: Tuple[SpeakerDirectoryEntry, ...] = ()
    sponsor_candidates: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> 'PageSignals':
        """Build signals from the scraper payload, dropping anything malformed."""
        if not isinstance(data, dict):
            return cls()

        meta = data.get('meta')
        meta = {k: v for k, v in meta.items() if isinstance(k, str) and isinstance(v, str)} \
            if isinstance(meta, dict) else {}

        structured = data.get('structuredData')
        if isinstance(structured, dict):
            structured = [structured]
        entries = []
        if isinstance(structured, list):
            # A JSON-LD script may hold an array of entities
            for entry in structured:
                candidates = entry if isinstance(entry, list) else [entry]
                entries.extend(copy.deepcopy(c) for c in candidates if isinstance(c, dict))
        structured = tuple(entries)

        main_text = data.get('mainText') if isinstance(data.get('mainText'), str) else ''
        html = data.get('html') if isinstance(data.get('html'), str) else ''

        blocks = []
        raw_blocks = data.get('sessionBlocks') if isinstance(data.get('sessionBlocks'), list) else []
        for block in raw_blocks:
            if not isinstance(block, dict) or not clean_string(block.get('title')):
                continue
            blocks.append(SessionBlock(
                title=clean_string(block.get('title')),
                time=clean_string(block.get('time')),
                speakers_text=clean_string(block.get('speakersText')),
                location=clean_string(block.get('location')),
                description=clean_string(block.get('description')),
            ))

        directory = []
        raw_directory = data.get('speakerDirectory') if isinstance(data.get('speakerDirectory'), list) else []
        for entry in raw_directory:
            if not isinstance(entry, dict) or not clean_string(entry.get('name')):
                continue
            directory.append(SpeakerDirectoryEntry(
                name=clean_string(entry.get('name')),
                profile_url=clean_string(entry.get('profileUrl')),
                context=clean_string(entry.get('context')),
            ))

        raw_sponsors = data.get('sponsorCandidates') if isinstance(data.get('sponsorCandidates'), list) else []
        sponsors = [clean_string(s) for s in raw_sponsors if clean_string(s)]

        return cls(
            url=clean_string(data.get('url')),
            title=clean_string(data.get('title')),
            meta=meta,
            structured_data=structured,
            main_text=main_text[:MAX_MAIN_TEXT_CHARS],
            html=html[:MAX_HTML_CHARS],
            session_blocks=tuple(blocks[:MAX_SESSION_BLOCKS]),
            speaker_directory=tuple(directory[:MAX_SPEAKER_DIRECTORY]),
            sponsor_candidates=tuple(sponsors[:MAX_SPONSOR_CANDIDATES]),
        )

    def to_dict(self, include_html: bool = False) -> Dict[str, Any]:
        data = {
            'url': self.url,
            'title': self.title,
            'meta': dict(self.meta),
            'structuredData': [copy.deepcopy(entry) for entry in self.structured_data],
            'mainText': self.main_text,
            'sessionBlocks': [b.to_dict() for b in self.session_blocks],
            'speakerDirectory': [e.to_dict() for e in self.speaker_directory],
            'sponsorCandidates': list(self.sponsor_candidates),
        }
        if include_html:
            data['html'] = self.html
        return data


@dataclass
class ModelResponse:
    """Raw model text plus the caller-reported finish reason."""
    text: str
    finish_reason: Optional[str] = None
