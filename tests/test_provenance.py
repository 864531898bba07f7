"""
Unit tests for the related-event provenance filter.
"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analyzers.enrichers.provenance import filter_related_events
from event_models import EventRecord, PageSignals, RelatedEvent


class TestRelatedEventProvenance(unittest.TestCase):
    """Test cases for filter_related_events."""

    def setUp(self):
        self.signals = PageSignals.from_dict({
            'url': 'https://devconf.example/2026',
            'mainText': 'See also our sister event at https://summit.example/2026 this fall.',
            'html': '<a href="https://workshop.example/spring">Spring workshop</a>',
        })

    def test_keeps_urls_seen_on_page(self):
        record = EventRecord(related_events=[
            RelatedEvent(url='https://summit.example/2026', name='Summit'),
            RelatedEvent(url='https://workshop.example/spring'),
        ])
        result = filter_related_events(record, self.signals)
        self.assertIs(result, record)

    def test_drops_invented_urls(self):
        record = EventRecord(related_events=[
            RelatedEvent(url='https://summit.example/2026'),
            RelatedEvent(url='https://invented.example/conf'),
        ])
        result = filter_related_events(record, self.signals)
        self.assertEqual([r.url for r in result.related_events], ['https://summit.example/2026'])
        self.assertEqual(len(record.related_events), 2)

    def test_prefixes_and_fragments_are_not_observed(self):
        signals = PageSignals.from_dict({'mainText': 'Agenda: https://summit.example/2026/agenda.'})
        record = EventRecord(related_events=[
            RelatedEvent(url='https://summit.example'),
            RelatedEvent(url='https://summit.example/2026'),
            RelatedEvent(url='e'),
            RelatedEvent(url='https://summit.example/2026/agenda'),
        ])
        result = filter_related_events(record, signals)
        self.assertEqual([r.url for r in result.related_events], ['https://summit.example/2026/agenda'])

    def test_profile_urls_count_as_observed(self):
        signals = PageSignals.from_dict({
            'speakerDirectory': [{'name': 'Ada', 'profileUrl': 'https://devconf.example/speakers/ada'}],
        })
        record = EventRecord(related_events=[RelatedEvent(url='https://devconf.example/speakers/ada')])
        self.assertIs(filter_related_events(record, signals), record)

    def test_nothing_observed_drops_everything(self):
        record = EventRecord(related_events=[RelatedEvent(url='https://summit.example/2026')])
        self.assertEqual(filter_related_events(record, PageSignals()).related_events, [])

    def test_no_related_events(self):
        record = EventRecord()
        self.assertIs(filter_related_events(record, self.signals), record)


if __name__ == '__main__':
    unittest.main()
