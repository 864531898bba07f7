"""
Default persona buckets and next best actions.

Used only when the model returned none; personas are derived from the titles
of people actually listed on the page.
"""

import re
from typing import List, Optional

from config import PERSONA_MAX_PEOPLE, PERSONA_MAX_BUCKETS
from event_models import ExpectedPersona, NextBestAction, Person


# Bucket label -> keyword pattern, matched as plain substrings of "title role"
PERSONA_BUCKETS = [
    ('Executive Leader', re.compile(r'(ceo|chief|president|founder|cofounder)')),
    ('VP/Director', re.compile(r'(vp|vice president|director|head of)')),
    ('Marketing & Growth Leader', re.compile(r'(marketing|growth|brand|go[- ]to[- ]market|sales)')),
    ('Operations Leader', re.compile(r'(operations|operator|franchise|franchising|restaurant excellence)')),
    ('Technology Leader', re.compile(r'(technology|it|digital|innovation|ai)')),
]

CONVERSATION_STARTERS = [
    'What are your top priorities this quarter?',
    'Which strategy is working best right now?',
    'Where do you see the biggest execution gap?',
]
PERSONA_KEYWORDS = ['growth', 'operations', 'technology']
PERSONA_PAIN_POINTS = ['Limited bandwidth', 'Need measurable ROI']


def derive_personas(people: List[Person]) -> List[ExpectedPersona]:
    """Bucket the first people's titles into persona categories, in order of first appearance."""
    labels = []
    for person in people[:PERSONA_MAX_PEOPLE]:
        text = f"{person.title or ''} {person.role or ''}".strip().lower()
        for label, pattern in PERSONA_BUCKETS:
            if text and label not in labels and pattern.search(text):
                labels.append(label)

    personas = []
    for label in labels:
        lowered = label.lower()
        personas.append(ExpectedPersona(
            persona=label,
            likelihood='High',
            count='Many',
            linkedin_message=f"Enjoyed seeing {lowered} represented at this event. Open to connecting?",
            ice_breaker=f"What is the biggest priority for {lowered} this year?",
            conversation_starters=list(CONVERSATION_STARTERS),
            keywords=list(PERSONA_KEYWORDS),
            pain_points=list(PERSONA_PAIN_POINTS),
        ))

    return personas[:PERSONA_MAX_BUCKETS]


def default_next_best_actions(event_name: Optional[str]) -> List[NextBestAction]:
    target = event_name or 'this event'
    return [
        NextBestAction(
            priority=1,
            action=f"Identify top 10 speaker targets for {target} and draft outreach",
            reason='Speakers are high-context connectors and often influence buying committees.',
        ),
        NextBestAction(
            priority=2,
            action='Build role-based talk tracks for operations, marketing, and technology leaders',
            reason='Role-specific messaging improves conversion from first conversation to follow-up.',
        ),
        NextBestAction(
            priority=3,
            action='Schedule post-event follow-up sequence within 48 hours',
            reason='Fast follow-up preserves context and increases response rates.',
        ),
    ]
