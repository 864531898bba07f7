import re
import logging
from datetime import datetime, date
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import (
    HTTP_MAX_RETRIES, HTTP_BACKOFF_FACTOR, HTTP_TIMEOUT_STANDARD, ENHANCED_USER_AGENT
)


# Unified Logger with context
class Logger:
    def __init__(self):
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
        self.logger = logging.getLogger("EventAnalyzer")

    def log(self, level: str, msg: str, **ctx):
        context = " | ".join(f"{k}={v}" for k, v in ctx.items()) if ctx else ""
        message = f"{msg} | {context}" if context else msg
        getattr(self.logger, level.lower())(message)

# Global instances
logger = Logger()


# Enhanced Singleton metaclass
class Singleton(type):
    _instances = {}
    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# Unified HTTP Client with retrying session
class HTTPClient(metaclass=Singleton):
    def __init__(self):
        self.session = self._create_session()

    def _create_session(self):
        session = requests.Session()
        retry = Retry(total=HTTP_MAX_RETRIES, backoff_factor=HTTP_BACKOFF_FACTOR,
                      status_forcelist=[500, 502, 503, 504])
        session.mount("http://", HTTPAdapter(max_retries=retry))
        session.mount("https://", HTTPAdapter(max_retries=retry))
        session.headers.update({'User-Agent': ENHANCED_USER_AGENT})
        return session

    def get(self, url: str, **kwargs) -> requests.Response:
        timeout = kwargs.pop('timeout', HTTP_TIMEOUT_STANDARD)
        return self.session.get(url, timeout=timeout, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        timeout = kwargs.pop('timeout', HTTP_TIMEOUT_STANDARD)
        return self.session.post(url, timeout=timeout, **kwargs)


class DateParser:
    """
    Unified date parsing for model output, structured metadata and page text.
    Everything is normalized to ISO (YYYY-MM-DD) strings.
    """

    SUPPORTED_FORMATS = [
        # ISO and standard formats
        '%Y-%m-%d',           # 2026-03-15 (ISO format - preferred)
        '%Y-%m-%d %H:%M:%S',  # 2026-03-15 14:30:00 (with timestamp)
        '%Y/%m/%d',           # 2026/03/15

        # US formats
        '%m/%d/%Y',           # 03/15/2026 (US format)
        '%m-%d-%Y',           # 03-15-2026

        # European formats
        '%d/%m/%Y',           # 15/03/2026 (European format)
        '%d-%m-%Y',           # 15-03-2026

        # Written month formats
        '%B %d, %Y',          # March 15, 2026 (full month name)
        '%b %d, %Y',          # Mar 15, 2026 (abbreviated month name)
        '%B %d %Y',           # March 15 2026 (no comma)
        '%b %d %Y',           # Mar 15 2026 (no comma)
        '%d %B %Y',           # 15 March 2026
        '%d %b %Y',           # 15 Mar 2026
        '%A, %B %d, %Y',      # Sunday, March 15, 2026

        # Additional common formats
        '%Y.%m.%d',           # 2026.03.15
        '%d.%m.%Y',           # 15.03.2026
    ]

    ISO_PREFIX = re.compile(r'^(\d{4})-(\d{2})-(\d{2})')

    @classmethod
    def parse_to_date(cls, date_str: Any) -> Optional[date]:
        """
        Parse various date string formats to datetime.date object.

        Args:
            date_str: Date string to parse

        Returns:
            datetime.date object or None if parsing fails
        """
        if not date_str or not isinstance(date_str, str):
            return None

        date_str = date_str.strip()
        if not date_str or date_str.upper() in ('TBD', 'N/A', 'NONE', 'NULL'):
            return None

        # ISO datetimes from JSON-LD ("2026-03-15T09:00:00-07:00") keep only the date part
        iso = cls.ISO_PREFIX.match(date_str)
        if iso:
            try:
                return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
            except ValueError:
                return None

        for fmt in cls.SUPPORTED_FORMATS:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue

        return None

    @classmethod
    def format_to_iso(cls, date_str: Any) -> Optional[str]:
        """
        Parse date string and return in ISO format (YYYY-MM-DD).

        Args:
            date_str: Date string to parse and format

        Returns:
            ISO formatted date string or None if parsing fails
        """
        parsed_date = cls.parse_to_date(date_str)
        if parsed_date:
            return parsed_date.strftime('%Y-%m-%d')
        return None


def clean_string(value: Any) -> Optional[str]:
    """Return a stripped string, or None for blanks and non-strings."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def pick_first_non_empty(*values: Any) -> Optional[str]:
    """Return the first candidate that is a non-blank string, stripped."""
    for value in values:
        cleaned = clean_string(value)
        if cleaned:
            return cleaned
    return None


def get_host_from_url(page_url: Any) -> Optional[str]:
    """Lower-cased host name of a URL, or None when it has none."""
    if not page_url or not isinstance(page_url, str):
        return None
    try:
        host = urlparse(page_url.strip()).hostname
    except ValueError:
        return None
    return host.lower() if host else None


def truncate_text(text: Optional[str], limit: int) -> str:
    """Shorten text for display, marking the cut."""
    if not text:
        return ''
    text = str(text)
    return text if len(text) <= limit else text[:limit - 3] + '...'


def unique_by_key(items: List[Any], key_func) -> List[Any]:
    """Keep the first item for each case-insensitive identity key."""
    seen = set()
    unique = []
    for item in items:
        key = key_func(item)
        if not key:
            continue
        key = key.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def iter_strings(value: Any):
    """Yield every string found in a JSON-like tree."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_strings(item)


def dict_without_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}
