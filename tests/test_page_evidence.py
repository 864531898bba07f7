"""
Unit tests for the page evidence helpers.
"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analyzers.enrichers.page_evidence import (
    find_structured_event, is_event_entity, format_structured_location, strip_title_suffix,
    extract_dates_from_text, extract_attendee_count, split_title_and_company, directory_by_name
)
from event_models import SpeakerDirectoryEntry


class TestStructuredData(unittest.TestCase):
    """Test cases for structured data lookups."""

    def test_event_types(self):
        self.assertTrue(is_event_entity({'@type': 'Event'}))
        self.assertTrue(is_event_entity({'@type': 'BusinessEvent'}))
        self.assertTrue(is_event_entity({'@type': ['Thing', 'EducationEvent']}))
        self.assertTrue(is_event_entity({'type': 'microdata'}))
        self.assertFalse(is_event_entity({'@type': 'Organization'}))
        self.assertFalse(is_event_entity({'@type': 'EventVenue'}))

    def test_graph_is_searched(self):
        entries = [
            {'@type': 'WebSite', 'name': 'Example'},
            {'@graph': [{'@type': 'Organization'}, {'@type': 'Event', 'name': 'DevConf'}]},
        ]
        self.assertEqual(find_structured_event(entries)['name'], 'DevConf')
        self.assertIsNone(find_structured_event([{'@type': 'WebPage'}]))
        self.assertIsNone(find_structured_event(None))

    def test_location_formatting(self):
        place = {
            '@type': 'Place',
            'address': {
                'streetAddress': '500 E Cesar Chavez St',
                'addressLocality': 'Austin',
                'addressRegion': 'TX',
                'addressCountry': {'name': 'US'},
            },
        }
        self.assertEqual(format_structured_location(place), '500 E Cesar Chavez St, Austin, TX, US')
        self.assertEqual(format_structured_location({'name': 'Convention Center', 'address': 'Austin'}),
                         'Convention Center')
        self.assertEqual(format_structured_location(' Austin, TX '), 'Austin, TX')
        self.assertEqual(format_structured_location([{'@type': 'VirtualLocation'}, {'name': 'Hall A'}]), 'Hall A')
        self.assertIsNone(format_structured_location({'address': {}}))


class TestTextEvidence(unittest.TestCase):
    """Test cases for title, date and attendee extraction."""

    def test_title_suffix(self):
        self.assertEqual(strip_title_suffix('DevConf 2026 | Example Events'), 'DevConf 2026')
        self.assertEqual(strip_title_suffix('DevConf 2026 - Example Events'), 'DevConf 2026')
        self.assertEqual(strip_title_suffix('Spring-Summit'), 'Spring-Summit')
        self.assertEqual(strip_title_suffix('DevConf'), 'DevConf')
        self.assertIsNone(strip_title_suffix('   '))
        self.assertIsNone(strip_title_suffix(None))

    def test_date_range(self):
        self.assertEqual(extract_dates_from_text('Join us April 2-4, 2026 in Austin'), ('2026-04-02', '2026-04-04'))
        self.assertEqual(extract_dates_from_text('March 15 – 17, 2026'), ('2026-03-15', '2026-03-17'))

    def test_single_date(self):
        self.assertEqual(extract_dates_from_text('Doors open March 15, 2026.'), ('2026-03-15', '2026-03-15'))

    def test_no_date(self):
        self.assertEqual(extract_dates_from_text('Dates to be announced'), (None, None))
        self.assertEqual(extract_dates_from_text(None), (None, None))

    def test_attendee_count(self):
        self.assertEqual(extract_attendee_count('Join 1,200+ attendees this spring'), 1200)
        self.assertEqual(extract_attendee_count('500 registered so far'), 500)
        self.assertEqual(extract_attendee_count('Over 80 Participants'), 80)
        self.assertIsNone(extract_attendee_count('Room for 5 attendees'))
        self.assertIsNone(extract_attendee_count('A great event'))


class TestSpeakerHelpers(unittest.TestCase):
    """Test cases for speaker directory helpers."""

    def test_split_title_and_company(self):
        self.assertEqual(split_title_and_company('VP Marketing | Acme'), ('VP Marketing', 'Acme'))
        self.assertEqual(split_title_and_company('CTO | Acme | Berlin'), ('CTO', 'Acme | Berlin'))
        self.assertEqual(split_title_and_company('Independent Consultant'), ('Independent Consultant', None))
        self.assertEqual(split_title_and_company(None), (None, None))

    def test_directory_first_occurrence_wins(self):
        directory = directory_by_name([
            SpeakerDirectoryEntry(name='Ada Lovelace', context='First'),
            SpeakerDirectoryEntry(name='ada lovelace', context='Second'),
        ])
        self.assertEqual(list(directory), ['ada lovelace'])
        self.assertEqual(directory['ada lovelace'].context, 'First')


if __name__ == '__main__':
    unittest.main()
