"""
Prompt construction for event analysis, pre-check and field repair.
"""

import json
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from analyzers.host_profiles import HostProfileCache, HostParsingProfile
from config import PRECHECK_CONTENT_CHARS
from event_models import EventRecord, PageSignals
from shared_utils import clean_string


@dataclass
class UserProfile:
    """Who is using the analysis; personalizes personas and outreach copy."""
    company_name: Optional[str] = None
    your_role: Optional[str] = None
    product: Optional[str] = None
    value_prop: Optional[str] = None
    target_personas: Optional[str] = None
    target_industries: Optional[str] = None
    competitors: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'UserProfile':
        data = data if isinstance(data, dict) else {}

        def pick(*keys):
            for key in keys:
                value = clean_string(data.get(key))
                if value:
                    return value
            return None

        return cls(
            company_name=pick('companyName', 'company_name'),
            your_role=pick('yourRole', 'your_role'),
            product=pick('product'),
            value_prop=pick('valueProp', 'value_prop'),
            target_personas=pick('targetPersonas', 'target_personas'),
            target_industries=pick('targetIndustries', 'target_industries'),
            competitors=pick('competitors'),
            notes=pick('notes'),
        )

    def is_empty(self) -> bool:
        return not (self.company_name or self.product)

    def target_persona_list(self) -> List[str]:
        if not self.target_personas:
            return []
        return [p.strip() for p in self.target_personas.split(',') if p.strip()]


EVENT_SCHEMA = """{
  "eventName": "Name of the event",
  "date": "Event date(s) as displayed (e.g. 'March 15-17, 2026')",
  "startDate": "YYYY-MM-DD of the first day",
  "endDate": "YYYY-MM-DD of the last day, same as startDate for single-day events",
  "location": "Location or Virtual",
  "description": "Brief description",
  "estimatedAttendees": null or a number taken from registration counts or capacity,
  "expectedPersonas": [
    {
      "persona": "Job title or role category",
      "likelihood": "High/Medium/Low",
      "count": "Estimated number, or 'Many'/'Few'",
      "linkedinMessage": "Short LinkedIn connection request referencing the event",
      "iceBreaker": "Natural in-person opener",
      "conversationStarters": ["Follow-up 1", "Follow-up 2", "Follow-up 3"],
      "keywords": ["industry term", "pain point", "trending topic"],
      "painPoints": ["Challenge they likely face"]
    }
  ],
  "people": [
    {
      "name": "Full name",
      "role": "Role at the event (Speaker, Panelist, Moderator, Host, Organizer, ...)",
      "title": "Job title",
      "company": "Company name",
      "persona": "Persona category",
      "linkedin": "LinkedIn URL if on the page, otherwise null",
      "linkedinMessage": "Personalized connection request",
      "iceBreaker": "Opener specific to this person"
    }
  ],
  "sponsors": [{"name": "Company name", "tier": "Sponsor tier if mentioned"}],
  "nextBestActions": [{"priority": 1, "action": "Specific recommendation", "reason": "Why it matters"}],
  "relatedEvents": [{"name": "Event name", "url": "Full URL", "date": "Date if visible", "relevance": "Why related"}]
}"""

ANALYSIS_INSTRUCTIONS = """INSTRUCTIONS:
- List EVERY person named on the page: speakers, panelists, moderators, hosts, founders, organizers.
- speakerDirectory and sessionBlocks are high-confidence scraped data; cross-reference them for titles and companies.
- Use sponsorCandidates for sponsors before weaker inference.
- Provide 3-5 specific next best actions ordered by impact.
- relatedEvents: ONLY events whose URLs appear in the page content. Never guess or invent URLs; return [] if none.
- startDate and endDate MUST be YYYY-MM-DD. "March 15-17, 2026" -> "2026-03-15" / "2026-03-17".
- estimatedAttendees must be a number or null.
- Return ONLY valid JSON, no other text."""

PRECHECK_SCHEMA = """{
  "isEvent": true or false,
  "confidence": "high" | "medium" | "low",
  "eventName": "Name of the event or null",
  "eventDate": "Start date as YYYY-MM-DD or null",
  "eventLocation": "City, State/Country or null",
  "eventId": "slugified-event-name_YYYYMMDD_location-slug, or null if not an event"
}"""


class PromptBuilder:
    """
    Builds model prompts for one page.

    The host profile cache is optional; without it no host hints are added.
    """

    def __init__(self, host_profiles: Optional[HostProfileCache] = None,
                 user_profile: Optional[UserProfile] = None):
        self.host_profiles = host_profiles
        self.user_profile = user_profile or UserProfile()

    def host_hints(self, page_url: Optional[str]) -> str:
        if self.host_profiles is None:
            return ''
        return format_host_hints(self.host_profiles.get(page_url))

    def user_context(self) -> str:
        profile = self.user_profile
        if profile.is_empty():
            return ''

        lines = [
            "USER CONTEXT (use this to personalize insights):",
            f"- Company: {profile.company_name or 'Not specified'}",
            f"- Role: {profile.your_role or 'Not specified'}",
            f"- Product/Service: {profile.product or 'Not specified'}",
            f"- Value Proposition: {profile.value_prop or 'Not specified'}",
            f"- Target Personas: {profile.target_personas or 'Not specified'}",
            f"- Target Industries: {profile.target_industries or 'Not specified'}",
            f"- Known Competitors: {profile.competitors or 'Not specified'}",
            f"- Additional Notes: {profile.notes or 'None'}",
        ]
        return "\n".join(lines)

    def persona_guidance(self) -> str:
        targets = self.user_profile.target_persona_list()
        if not targets:
            return ''
        return (f"The user's priority target personas are: {', '.join(targets)}.\n"
                "When generating expectedPersonas, list these FIRST if they are likely to attend, "
                "then add other relevant personas found in the event content.")

    def build_analysis_prompt(self, signals: PageSignals) -> str:
        sections = [
            "You are helping a go-to-market team analyze a conference or event web page.",
            self.user_context(),
            self.persona_guidance(),
            self.host_hints(signals.url),
            "Extract ALL people and companies from this event page. Return a JSON object:",
            EVENT_SCHEMA,
            ANALYSIS_INSTRUCTIONS,
            f"Page URL: {signals.url or ''}\nPage Title: {signals.title or ''}",
            "Page Content:\n" + json.dumps(signals.to_dict(), indent=2, ensure_ascii=False),
        ]
        return "\n\n".join(section for section in sections if section)

    def build_precheck_prompt(self, signals: PageSignals) -> str:
        sections = [
            "You are a strict classifier. Decide whether this ENTIRE web page is dedicated to ONE specific "
            "event (conference, meetup, summit, workshop). Directories, articles that mention events, "
            "company sites and calendars with several events are NOT event pages. Default to false.",
            f"PAGE URL: {signals.url or ''}\nPAGE TITLE: {signals.title or ''}",
            "PAGE CONTENT (truncated):\n" + (signals.main_text or '')[:PRECHECK_CONTENT_CHARS],
            "Respond with ONLY a JSON object (no markdown):\n" + PRECHECK_SCHEMA,
            "Only return confidence \"high\" when the whole page is a dedicated event page.",
            self.host_hints(signals.url),
        ]
        return "\n\n".join(section for section in sections if section)

    def build_repair_prompt(self, missing: List[str], record: EventRecord, signals: PageSignals) -> str:
        return "\n\n".join([
            "You are repairing missing fields in event extraction JSON.",
            "TASK:\n- Fill ONLY missing or null/empty fields.\n- Do NOT remove existing valid values.\n"
            "- Keep strict JSON output only.",
            "MISSING FIELDS:\n" + ", ".join(missing),
            "CURRENT JSON:\n" + json.dumps(record.to_dict(), indent=2, ensure_ascii=False),
            "SOURCE PAGE CONTENT:\n" + json.dumps(signals.to_dict(), indent=2, ensure_ascii=False),
            "Return ONLY repaired JSON.",
        ])


def format_host_hints(profile: Optional[HostParsingProfile]) -> str:
    """Render a host profile as a prompt section; empty when it carries no hints."""
    if profile is None or not profile.has_hints():
        return ''
    return "\n".join([
        "HOST PARSING DICTIONARY (learned profile for this domain):",
        f"- Confidence Score: {profile.confidence_score}",
        f"- Samples Seen: {profile.total_samples}",
        f"- Preferred Entity Sources: {', '.join(profile.suggested_entity_sources) or 'none'}",
        f"- People Selectors: {', '.join(profile.suggested_people_selectors) or 'none'}",
        f"- Sponsor Selectors: {', '.join(profile.suggested_sponsor_selectors) or 'none'}",
        "Prioritize these learned host patterns when extracting people, sponsors and event details.",
    ])
