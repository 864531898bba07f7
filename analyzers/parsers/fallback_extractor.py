"""
Fallback field extraction for responses that could not be decoded at all.

Each field is pulled out independently with a pattern match, so one broken
region of the text does not hide the others.
"""

import re
import json
from typing import Dict, Any, List, Optional

from analyzers.exceptions import NoUsableSignal
from event_models import EventRecord, coerce_non_negative_int
from shared_utils import logger


STRING_FIELDS = ['eventName', 'date', 'startDate', 'endDate', 'location', 'description']

# At least one of these must be present for the page to count as parsed
SIGNAL_FIELDS = ['eventName', 'date', 'location', 'description']


def _string_value_pattern(key: str):
    return re.compile(r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(key), re.DOTALL)


STRING_PATTERNS = {key: _string_value_pattern(key) for key in STRING_FIELDS}
ATTENDEES_PATTERN = re.compile(r'"estimatedAttendees"\s*:\s*"?(\d{1,3}(?:,\d{3})+|\d+)')
NUMBER_TAIL_CHARS = '0123456789, \t\r\n'


def _nesting_depths(text: str) -> List[int]:
    """Open '{' / '[' count in effect at each character, ignoring string contents."""
    depths = []
    depth = 0
    in_string = False
    escaped = False
    for char in text:
        depths.append(depth)
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in '{[':
            depth += 1
        elif char in '}]':
            depth = max(depth - 1, 0)
    return depths


def _top_level_match(pattern, text: str, depths: List[int]):
    """First match whose key sits directly in the outermost object, or outside any structure."""
    for match in pattern.finditer(text):
        if depths[match.start()] <= 1:
            return match
    return None


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except ValueError:
        return raw


class FallbackFieldExtractor:
    """Extracts the core scalar fields from undecodable model text."""

    def extract_fields(self, text: Optional[str]) -> Dict[str, Any]:
        """Return every field that could be found, keyed by canonical name."""
        fields = {}
        if not text:
            return fields

        depths = _nesting_depths(text)
        for key, pattern in STRING_PATTERNS.items():
            match = _top_level_match(pattern, text, depths)
            if not match:
                continue
            value = _unescape(match.group(1)).strip()
            if value:
                fields[key] = value

        attendees = _top_level_match(ATTENDEES_PATTERN, text, depths)
        # A count running into the end of text may have lost digits
        if attendees and text[attendees.end():].strip(NUMBER_TAIL_CHARS):
            count = coerce_non_negative_int(attendees.group(1))
            if count is not None:
                fields['estimatedAttendees'] = count

        return fields

    def extract(self, text: Optional[str]) -> EventRecord:
        """
        Build a minimal EventRecord from whatever fields can be found.

        Raises:
            NoUsableSignal: when none of the identifying fields is present
        """
        fields = self.extract_fields(text)

        if not any(key in fields for key in SIGNAL_FIELDS):
            raise NoUsableSignal()

        logger.log("info", "Fallback extraction recovered fields", fields=",".join(sorted(fields)))
        return EventRecord.from_document(fields)
