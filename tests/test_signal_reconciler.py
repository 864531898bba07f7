"""
Unit tests for SignalReconciler.

Covers field precedence, date ordering, people synthesis, default personas
and actions, and the idempotence of reconciliation.
"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analyzers.enrichers.signal_reconciler import SignalReconciler, reconcile
from analyzers.parsers.recovery_parser import recover_document
from config import DEFAULT_EVENT_NAME
from event_models import EventRecord, PageSignals, Person, Sponsor


PAGE = {
    'url': 'https://www.devconf.example/2026',
    'title': 'DevConf 2026 | Example Events',
    'meta': {
        'og:title': 'DevConf 2026 (Open Graph)',
        'og:description': 'Open Graph description',
        'description': 'Meta description',
    },
    'structuredData': [{
        '@context': 'https://schema.org',
        '@graph': [
            {'@type': 'Organization', 'name': 'Example Events'},
            {
                '@type': 'BusinessEvent',
                'name': 'DevConf 2026',
                'description': 'The developer conference.',
                'startDate': '2026-04-02T09:00:00-05:00',
                'endDate': '2026-04-04',
                'location': {'@type': 'Place', 'name': 'Austin Convention Center'},
            },
        ],
    }],
    'mainText': 'Join 1,200+ attendees in Austin. April 2-4, 2026.',
    'speakerDirectory': [
        {'name': 'Ada Lovelace', 'context': 'Chief Scientist | Analytical Engines'},
        {'name': 'Grace Hopper', 'context': 'VP Engineering | Navy'},
        {'name': 'ada lovelace', 'context': 'Duplicate entry'},
    ],
    'sponsorCandidates': ['Acme', 'acme', 'Globex'],
}


class TestSignalReconciler(unittest.TestCase):
    """Test cases for SignalReconciler.reconcile."""

    def setUp(self):
        self.reconciler = SignalReconciler()
        self.signals = PageSignals.from_dict(PAGE)

    def test_model_values_win(self):
        record = EventRecord(event_name='Model Name', description='Model description', location='Model City',
                             start_date='2026-04-01', end_date='2026-04-05', estimated_attendees=50)
        result = self.reconciler.reconcile(record, self.signals)
        self.assertEqual(result.event_name, 'Model Name')
        self.assertEqual(result.description, 'Model description')
        self.assertEqual(result.location, 'Model City')
        self.assertEqual((result.start_date, result.end_date), ('2026-04-01', '2026-04-05'))
        self.assertEqual(result.estimated_attendees, 50)

    def test_structured_data_backfills(self):
        result = self.reconciler.reconcile(EventRecord(), self.signals)
        self.assertEqual(result.event_name, 'DevConf 2026')
        self.assertEqual(result.description, 'The developer conference.')
        self.assertEqual(result.location, 'Austin Convention Center')
        self.assertEqual((result.start_date, result.end_date), ('2026-04-02', '2026-04-04'))
        self.assertEqual(result.date, '2026-04-02 to 2026-04-04')
        self.assertEqual(result.estimated_attendees, 1200)

    def test_name_falls_back_through_meta_and_title(self):
        signals = PageSignals.from_dict({'title': 'DevConf 2026 | Example Events',
                                         'meta': {'og:title': 'OG Name'}})
        self.assertEqual(self.reconciler.reconcile(EventRecord(), signals).event_name, 'OG Name')

        signals = PageSignals.from_dict({'title': 'DevConf 2026 | Example Events'})
        self.assertEqual(self.reconciler.reconcile(EventRecord(), signals).event_name, 'DevConf 2026')

        self.assertEqual(self.reconciler.reconcile(EventRecord(), PageSignals()).event_name, DEFAULT_EVENT_NAME)

    def test_description_falls_back_to_main_text(self):
        signals = PageSignals.from_dict({'meta': {'description': 'Meta description'}})
        self.assertEqual(self.reconciler.reconcile(EventRecord(), signals).description, 'Meta description')

        signals = PageSignals.from_dict({'mainText': 'x' * 1000})
        self.assertEqual(self.reconciler.reconcile(EventRecord(), signals).description, 'x' * 320)

    def test_dates_from_text_when_no_structured_data(self):
        signals = PageSignals.from_dict({'mainText': 'Happening March 15-17, 2026 downtown'})
        result = self.reconciler.reconcile(EventRecord(), signals)
        self.assertEqual((result.start_date, result.end_date), ('2026-03-15', '2026-03-17'))

    def test_backfill_that_breaks_ordering_is_rejected(self):
        record = EventRecord(end_date='2026-03-01')
        result = self.reconciler.reconcile(record, self.signals)
        self.assertEqual((result.start_date, result.end_date), ('2026-03-01', '2026-03-01'))

    def test_single_date_is_mirrored(self):
        result = self.reconciler.reconcile(EventRecord(start_date='2026-03-15'), PageSignals())
        self.assertEqual((result.start_date, result.end_date), ('2026-03-15', '2026-03-15'))
        self.assertEqual(result.date, '2026-03-15')

    def test_zero_attendees_kept(self):
        result = self.reconciler.reconcile(EventRecord(estimated_attendees=0), self.signals)
        self.assertEqual(result.estimated_attendees, 0)

    def test_host_name_is_location_of_last_resort(self):
        signals = PageSignals.from_dict({'url': 'https://Summit.Example.org/agenda'})
        self.assertEqual(self.reconciler.reconcile(EventRecord(), signals).location, 'summit.example.org')

    def test_people_synthesized_from_directory(self):
        result = self.reconciler.reconcile(EventRecord(), self.signals)
        self.assertEqual(
            [(p.name, p.role, p.title, p.company) for p in result.people],
            [('Ada Lovelace', 'Speaker', 'Chief Scientist', 'Analytical Engines'),
             ('Grace Hopper', 'Speaker', 'VP Engineering', 'Navy')]
        )

    def test_existing_people_enriched_not_replaced(self):
        record = EventRecord(people=[Person(name='Grace Hopper', title='Rear Admiral'), Person(name='Linus')])
        result = self.reconciler.reconcile(record, self.signals)
        self.assertEqual([p.name for p in result.people], ['Grace Hopper', 'Linus'])
        grace = result.people[0]
        self.assertEqual((grace.title, grace.company, grace.role), ('Rear Admiral', 'Navy', 'Speaker'))
        self.assertIsNone(result.people[1].role)

    def test_sponsors_from_candidates(self):
        result = self.reconciler.reconcile(EventRecord(), self.signals)
        self.assertEqual([s.name for s in result.sponsors], ['Acme', 'Globex'])

        record = EventRecord(sponsors=[Sponsor(name='Initech', tier='Gold')])
        self.assertEqual([s.name for s in self.reconciler.reconcile(record, self.signals).sponsors], ['Initech'])

    def test_personas_from_titles(self):
        result = self.reconciler.reconcile(EventRecord(), self.signals)
        self.assertEqual([p.persona for p in result.expected_personas], ['Executive Leader', 'VP/Director'])
        persona = result.expected_personas[0]
        self.assertEqual((persona.likelihood, persona.count), ('High', 'Many'))
        self.assertTrue(persona.conversation_starters)

    def test_persona_keywords_match_substrings(self):
        record = EventRecord(people=[Person(name='Pat', title='Head of Retail')])
        result = self.reconciler.reconcile(record, PageSignals())
        self.assertEqual([p.persona for p in result.expected_personas], ['VP/Director', 'Technology Leader'])

    def test_personas_in_order_of_first_appearance(self):
        record = EventRecord(people=[Person(name='Pat', title='VP Marketing'), Person(name='Sam', title='CEO')])
        result = self.reconciler.reconcile(record, PageSignals())
        self.assertEqual([p.persona for p in result.expected_personas],
                         ['VP/Director', 'Marketing & Growth Leader', 'Executive Leader'])

    def test_no_personas_without_titles(self):
        record = EventRecord(people=[Person(name='Pat')])
        self.assertEqual(self.reconciler.reconcile(record, PageSignals()).expected_personas, [])

    def test_default_actions_mention_event(self):
        result = self.reconciler.reconcile(EventRecord(), self.signals)
        self.assertEqual([a.priority for a in result.next_best_actions], [1, 2, 3])
        self.assertIn('DevConf 2026', result.next_best_actions[0].action)

        result = self.reconciler.reconcile(EventRecord(), PageSignals())
        self.assertIn('this event', result.next_best_actions[0].action)

    def test_idempotent(self):
        once = self.reconciler.reconcile(EventRecord(), self.signals)
        twice = self.reconciler.reconcile(once, self.signals)
        self.assertEqual(once, twice)

    def test_known_values_never_lost(self):
        record = EventRecord(event_name='Model Name', location='Somewhere', people=[Person(name='Linus')])
        result = self.reconciler.reconcile(record, self.signals)
        self.assertEqual(result.event_name, 'Model Name')
        self.assertEqual(result.location, 'Somewhere')
        self.assertIn('Linus', [p.name for p in result.people])

    def test_input_record_not_mutated(self):
        record = EventRecord(people=[Person(name='Grace Hopper')])
        before = record.copy()
        self.reconciler.reconcile(record, self.signals)
        self.assertEqual(record, before)

    def test_decoded_response_with_speaker_directory(self):
        document = recover_document(
            "Sure! ```json\n{\"eventName\":\"DevConf\",\"startDate\":\"2026-03-15\",\"people\":[]}"
        )
        signals = PageSignals.from_dict({'speakerDirectory': PAGE['speakerDirectory']})
        result = reconcile(EventRecord.from_document(document), signals).normalized()
        self.assertEqual(result.event_name, 'DevConf')
        self.assertEqual(result.end_date, '2026-03-15')
        self.assertEqual(len(result.people), 2)


if __name__ == '__main__':
    unittest.main()
