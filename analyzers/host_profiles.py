"""
Host parsing profiles - learned extraction hints per website host.

Profiles are advisory prompt input only. Each host is looked up at most once
per cache; failures are cached as None so they are not retried.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from shared_utils import logger, get_host_from_url


def _string_items(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


@dataclass
class HostParsingProfile:
    suggested_entity_sources: List[str] = field(default_factory=list)
    suggested_people_selectors: List[str] = field(default_factory=list)
    suggested_sponsor_selectors: List[str] = field(default_factory=list)
    confidence_score: float = 0
    total_samples: float = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HostParsingProfile':
        return cls(
            suggested_entity_sources=_string_items(data.get('suggestedEntitySources')),
            suggested_people_selectors=_string_items(data.get('suggestedPeopleSelectors')),
            suggested_sponsor_selectors=_string_items(data.get('suggestedSponsorSelectors')),
            confidence_score=_number(data.get('confidenceScore')),
            total_samples=_number(data.get('totalSamples')),
        )

    def has_hints(self) -> bool:
        return bool(self.suggested_entity_sources or self.suggested_people_selectors
                    or self.suggested_sponsor_selectors)


class HostProfileCache:
    """
    Fetch-once cache of host parsing profiles keyed by lower-cased host.

    Args:
        api: object with is_configured() and get_parsing_profile(url),
             normally a BackendAPIClient. None disables lookups.
    """

    def __init__(self, api=None):
        self.api = api
        self._profiles: Dict[str, Optional[HostParsingProfile]] = {}
        self._lock = threading.Lock()
        self._host_locks: Dict[str, threading.Lock] = {}

    def get(self, page_url: Optional[str]) -> Optional[HostParsingProfile]:
        host = get_host_from_url(page_url)
        if not host:
            return None

        with self._lock:
            if host in self._profiles:
                return self._profiles[host]
            host_lock = self._host_locks.setdefault(host, threading.Lock())

        # Only lookups for the same host wait on each other
        with host_lock:
            with self._lock:
                if host in self._profiles:
                    return self._profiles[host]

            profile = self._fetch(host, page_url)
            with self._lock:
                self._profiles[host] = profile
            return profile

    def _fetch(self, host: str, page_url: str) -> Optional[HostParsingProfile]:
        if self.api is None or not self.api.is_configured():
            return None
        try:
            data = self.api.get_parsing_profile(page_url)
        except Exception as e:
            logger.log("warning", f"Host parsing profile lookup failed: {str(e)}", host=host)
            return None
        if not isinstance(data, dict):
            return None
        logger.log("info", "Loaded host parsing profile", host=host)
        return HostParsingProfile.from_dict(data)

    def __contains__(self, host: str) -> bool:
        return host.lower() in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)
