"""
Related-event provenance check.

A related event is only kept when its URL was observed on the scraped page:
either a URL token in the page text or markup, or a url/profileUrl field.
Matching is exact; a prefix or fragment of an observed URL does not count.
"""

import re
from typing import Any, List, Set

from event_models import EventRecord, PageSignals, RelatedEvent
from shared_utils import logger, iter_strings


URL_TOKEN = re.compile(r'https?://[^\s"\'<>]+', re.IGNORECASE)
URL_TRAILING_PUNCTUATION = '.,;:!?)]}\''
URL_FIELDS = ('url', 'profileUrl')


def _url_field_values(value: Any):
    if isinstance(value, dict):
        for key, item in value.items():
            if key in URL_FIELDS and isinstance(item, str):
                yield item
            else:
                yield from _url_field_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _url_field_values(item)


def observed_urls(signals: PageSignals) -> Set[str]:
    """Every URL the page itself shows, trailing sentence punctuation removed."""
    data = signals.to_dict(include_html=True)
    urls: Set[str] = set()

    for text in iter_strings(data):
        for token in URL_TOKEN.findall(text):
            token = token.rstrip(URL_TRAILING_PUNCTUATION)
            if token:
                urls.add(token)

    for value in _url_field_values(data):
        value = value.strip()
        if value:
            urls.add(value)

    return urls


def filter_related_events(record: EventRecord, signals: PageSignals) -> EventRecord:
    """Return a copy of the record without related events the page never mentioned."""
    if not record.related_events:
        return record

    observed = observed_urls(signals)
    kept: List[RelatedEvent] = []
    for related in record.related_events:
        if related.url in observed:
            kept.append(related)
        else:
            logger.log("info", "Dropping related event not found on page", url=related.url)

    if len(kept) == len(record.related_events):
        return record

    filtered = record.copy()
    filtered.related_events = kept
    return filtered
