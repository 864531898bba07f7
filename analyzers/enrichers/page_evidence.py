"""
Helpers that read event facts out of scraped page signals.

Everything here only reports what is observably on the page; nothing is
guessed.
"""

import re
from typing import Dict, List, Any, Optional, Tuple

from shared_utils import DateParser, clean_string, pick_first_non_empty, unique_by_key


PIPE_SUFFIX = re.compile(r'\s*\|\s*[^|]+$')
SEPARATOR_SUFFIX = re.compile(r'^(.*\S)\s+[-·•–—]\s+\S.*$', re.DOTALL)

DATE_RANGE = re.compile(r'([A-Z][a-z]+\s+\d{1,2})\s*[-–]\s*(\d{1,2}),\s*(\d{4})')
SINGLE_DATE = re.compile(r'([A-Z][a-z]+\s+\d{1,2},\s*\d{4})')

ATTENDEE_COUNT = re.compile(
    r'(?<![\d,])(\d{1,3}(?:,\d{3})+|\d{2,5})\s*(\+)?\s*(attendees|attending|participants|registered|registrants)',
    re.IGNORECASE
)


def flatten_structured_data(entries) -> List[Dict[str, Any]]:
    """Expand JSON-LD @graph containers into their member entities."""
    flat = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        graph = entry.get('@graph')
        if isinstance(graph, list):
            flat.extend(item for item in graph if isinstance(item, dict))
        else:
            flat.append(entry)
    return flat


def _is_event_type(value: Any) -> bool:
    return isinstance(value, str) and value.strip().endswith('Event')


def is_event_entity(entity: Dict[str, Any]) -> bool:
    """Schema.org Event (or a subtype such as BusinessEvent), or a microdata event."""
    if entity.get('type') == 'microdata':
        return True
    schema_type = entity.get('@type')
    if isinstance(schema_type, list):
        return any(_is_event_type(t) for t in schema_type)
    return _is_event_type(schema_type)


def find_structured_event(entries) -> Optional[Dict[str, Any]]:
    for entity in flatten_structured_data(entries):
        if is_event_entity(entity):
            return entity
    return None


def format_postal_address(address: Any) -> Optional[str]:
    if isinstance(address, str):
        return clean_string(address)
    if not isinstance(address, dict):
        return None

    country = address.get('addressCountry')
    if isinstance(country, dict):
        country = country.get('name')

    parts = [
        address.get('streetAddress'),
        address.get('addressLocality'),
        address.get('addressRegion'),
        address.get('postalCode'),
        country,
    ]
    parts = [clean_string(p) for p in parts if clean_string(p)]
    return ', '.join(parts) or None


def format_structured_location(location: Any) -> Optional[str]:
    """Place name first, then its address; a list of places yields its first usable one."""
    if isinstance(location, str):
        return clean_string(location)
    if isinstance(location, list):
        for item in location:
            formatted = format_structured_location(item)
            if formatted:
                return formatted
        return None
    if not isinstance(location, dict):
        return None
    return pick_first_non_empty(location.get('name'), format_postal_address(location.get('address')))


def strip_title_suffix(title: Any) -> Optional[str]:
    """
    Remove a trailing site-branding suffix from a page title.

    "DevConf 2026 | Example" -> "DevConf 2026"
    "DevConf 2026 - Example" -> "DevConf 2026"
    Hyphenated words ("Spring-Summit") are left alone.
    """
    title = clean_string(title)
    if not title:
        return None
    cleaned = PIPE_SUFFIX.sub('', title).strip()
    separated = SEPARATOR_SUFFIX.match(cleaned)
    if separated:
        cleaned = separated.group(1).strip()
    return cleaned or None


def extract_dates_from_text(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Find event dates in free text.

    A "Month D-D, YYYY" range wins over a single "Month D, YYYY" date; a single
    date is returned as both start and end.
    """
    if not text:
        return None, None

    date_range = DATE_RANGE.search(text)
    if date_range:
        month = date_range.group(1).split()[0]
        start = DateParser.format_to_iso(f"{date_range.group(1)}, {date_range.group(3)}")
        end = DateParser.format_to_iso(f"{month} {date_range.group(2)}, {date_range.group(3)}")
        return start, end

    single = SINGLE_DATE.search(text)
    if single:
        parsed = DateParser.format_to_iso(single.group(1))
        return parsed, parsed

    return None, None


def extract_attendee_count(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    match = ATTENDEE_COUNT.search(text)
    if not match:
        return None
    return int(match.group(1).replace(',', ''))


def split_title_and_company(context: Any) -> Tuple[Optional[str], Optional[str]]:
    """'VP Marketing | Acme' -> ('VP Marketing', 'Acme'); without a pipe the whole text is the title."""
    context = clean_string(context)
    if not context:
        return None, None
    parts = [part.strip() for part in context.split('|') if part.strip()]
    if len(parts) >= 2:
        return parts[0], ' | '.join(parts[1:])
    return context, None


def directory_by_name(speaker_directory) -> Dict[str, Any]:
    """Index directory entries by lower-cased name, keeping the first occurrence."""
    indexed = {}
    for entry in unique_by_key(list(speaker_directory or []), lambda e: e.name):
        indexed[entry.name.strip().lower()] = entry
    return indexed
