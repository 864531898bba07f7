"""
Unit tests for EventRecord projection, PageSignals construction and
final normalization.
"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import DEFAULT_EVENT_NAME, MAX_MAIN_TEXT_CHARS, MAX_SESSION_BLOCKS, MAX_SPONSOR_CANDIDATES
from event_models import EventRecord, PageSignals, Person, coerce_non_negative_int


class TestEventRecordProjection(unittest.TestCase):
    """Test cases for EventRecord.from_document."""

    def test_non_mapping_documents_give_defaults(self):
        for document in [None, [], "text", 42]:
            record = EventRecord.from_document(document)
            self.assertEqual(record, EventRecord())
            self.assertEqual(record.event_name, DEFAULT_EVENT_NAME)

    def test_wrong_types_become_absent(self):
        record = EventRecord.from_document({
            'eventName': 42,
            'location': ['Austin'],
            'description': '   ',
            'estimatedAttendees': 'lots',
            'people': 'Ada, Grace',
            'sponsors': {'name': 'Acme'},
            'nextBestActions': None,
        })
        self.assertEqual(record.event_name, DEFAULT_EVENT_NAME)
        self.assertIsNone(record.location)
        self.assertIsNone(record.description)
        self.assertIsNone(record.estimated_attendees)
        self.assertEqual(record.people, [])
        self.assertEqual(record.sponsors, [])
        self.assertEqual(record.next_best_actions, [])

    def test_legacy_speakers_key(self):
        record = EventRecord.from_document({'speakers': [{'name': 'Ada Lovelace', 'title': 'Chief Scientist'}]})
        self.assertEqual(record.people, [Person(name='Ada Lovelace', title='Chief Scientist')])

    def test_people_key_wins_over_speakers(self):
        record = EventRecord.from_document({'people': [{'name': 'Grace'}], 'speakers': [{'name': 'Ada'}]})
        self.assertEqual([p.name for p in record.people], ['Grace'])

    def test_collections_deduplicated_case_insensitively(self):
        record = EventRecord.from_document({
            'people': [{'name': 'Ada Lovelace', 'title': 'First'}, {'name': 'ADA LOVELACE', 'title': 'Second'},
                       {'title': 'No name'}, 'Grace Hopper'],
            'sponsors': ['Acme', {'name': 'acme', 'tier': 'Gold'}, {'name': 'Globex', 'tier': 1}],
        })
        self.assertEqual([(p.name, p.title) for p in record.people],
                         [('Ada Lovelace', 'First'), ('Grace Hopper', None)])
        self.assertEqual([(s.name, s.tier) for s in record.sponsors], [('Acme', None), ('Globex', '1')])

    def test_dates_normalized_and_ordered(self):
        record = EventRecord.from_document({'startDate': 'March 17, 2026', 'endDate': '2026-03-15T10:00:00Z'})
        self.assertEqual(record.start_date, '2026-03-17')
        self.assertEqual(record.end_date, '2026-03-17')

        record = EventRecord.from_document({'startDate': 'TBD', 'endDate': '2026-03-15'})
        self.assertIsNone(record.start_date)
        self.assertEqual(record.end_date, '2026-03-15')

    def test_attendee_coercion(self):
        self.assertEqual(coerce_non_negative_int(250.0), 250)
        self.assertEqual(coerce_non_negative_int('1,500'), 1500)
        self.assertEqual(coerce_non_negative_int(0), 0)
        self.assertIsNone(coerce_non_negative_int(-5))
        self.assertIsNone(coerce_non_negative_int(True))
        self.assertIsNone(coerce_non_negative_int(12.5))
        self.assertIsNone(coerce_non_negative_int(float('nan')))

    def test_next_best_action_priorities(self):
        record = EventRecord.from_document({'nextBestActions': [
            {'action': 'First'}, {'priority': '5', 'action': 'Second', 'rationale': 'Because'}, {'priority': 1},
        ]})
        self.assertEqual([(a.priority, a.action, a.reason) for a in record.next_best_actions],
                         [(1, 'First', None), (5, 'Second', 'Because')])

    def test_related_events_require_url(self):
        record = EventRecord.from_document({'relatedEvents': [
            {'name': 'No URL'}, {'name': 'Summit', 'url': 'https://summit.example/2026'},
        ]})
        self.assertEqual([r.url for r in record.related_events], ['https://summit.example/2026'])

    def test_to_dict_uses_canonical_names(self):
        record = EventRecord.from_document({'eventName': 'DevConf', 'people': [{'name': 'Ada', 'iceBreaker': 'Hi'}]})
        data = record.to_dict()
        self.assertEqual(data['eventName'], 'DevConf')
        self.assertEqual(data['people'][0]['iceBreaker'], 'Hi')
        self.assertEqual(EventRecord.from_document(data), record)


class TestEventRecordNormalization(unittest.TestCase):
    """Test cases for EventRecord.normalized."""

    def test_blank_name_defaults(self):
        self.assertEqual(EventRecord(event_name='  ').normalized().event_name, DEFAULT_EVENT_NAME)
        self.assertEqual(EventRecord(event_name=' DevConf ').normalized().event_name, 'DevConf')

    def test_dates_mirrored_and_ordered(self):
        record = EventRecord(start_date='2026-03-15').normalized()
        self.assertEqual((record.start_date, record.end_date), ('2026-03-15', '2026-03-15'))

        record = EventRecord(start_date='2026-03-15', end_date='2026-03-01').normalized()
        self.assertEqual((record.start_date, record.end_date), ('2026-03-15', '2026-03-15'))

    def test_original_untouched(self):
        record = EventRecord(event_name=' x ', start_date='2026-03-15')
        record.normalized()
        self.assertEqual(record.event_name, ' x ')
        self.assertIsNone(record.end_date)


class TestPageSignals(unittest.TestCase):
    """Test cases for PageSignals.from_dict."""

    def test_limits_applied(self):
        signals = PageSignals.from_dict({
            'mainText': 'x' * (MAX_MAIN_TEXT_CHARS + 100),
            'sessionBlocks': [{'title': f'Session {i}'} for i in range(MAX_SESSION_BLOCKS + 10)],
            'sponsorCandidates': [f'Sponsor {i}' for i in range(MAX_SPONSOR_CANDIDATES + 10)],
        })
        self.assertEqual(len(signals.main_text), MAX_MAIN_TEXT_CHARS)
        self.assertEqual(len(signals.session_blocks), MAX_SESSION_BLOCKS)
        self.assertEqual(len(signals.sponsor_candidates), MAX_SPONSOR_CANDIDATES)

    def test_malformed_fields_dropped(self):
        signals = PageSignals.from_dict({
            'url': 123,
            'meta': {'og:title': 'DevConf', 'broken': None},
            'mainText': ['not', 'text'],
            'speakerDirectory': [{'name': 'Ada', 'context': 'CTO | Acme'}, {'context': 'no name'}, 'Grace'],
            'sponsorCandidates': ['Acme', None, '  '],
        })
        self.assertIsNone(signals.url)
        self.assertEqual(signals.meta, {'og:title': 'DevConf'})
        self.assertEqual(signals.main_text, '')
        self.assertEqual([e.name for e in signals.speaker_directory], ['Ada'])
        self.assertEqual(signals.sponsor_candidates, ('Acme',))

    def test_structured_data_shapes(self):
        signals = PageSignals.from_dict({'structuredData': {'@type': 'Event', 'name': 'Solo'}})
        self.assertEqual(len(signals.structured_data), 1)

        signals = PageSignals.from_dict({'structuredData': [[{'@type': 'Event'}, 'junk'], {'@type': 'Place'}, 7]})
        self.assertEqual([e['@type'] for e in signals.structured_data], ['Event', 'Place'])

    def test_non_mapping_payload(self):
        self.assertEqual(PageSignals.from_dict(None), PageSignals())


if __name__ == '__main__':
    unittest.main()
