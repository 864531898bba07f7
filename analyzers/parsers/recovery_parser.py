"""
Recovery Parser - Turns untrusted model text into a decodable JSON document.

Model output may be wrapped in prose or code fences, carry trailing commas,
or be cut off mid-object by the output token cap. The parser keeps as much
of the usable content as it can and never invents values.
"""

import re
import json
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

from analyzers.exceptions import StructuralDecodeFailure
from shared_utils import logger


FENCE_MARKER = re.compile(r'```[A-Za-z0-9_-]*')
VALUE_TOKEN = re.compile(r'-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null')
LITERALS = ('true', 'false', 'null')

CLOSER_FOR = {'{': '}', '[': ']'}
TOKEN_DELIMITERS = ',:{}[]"'

# Scanner states
NORMAL = 'normal'
IN_STRING = 'in_string'
IN_ESCAPE = 'in_escape'


@dataclass
class ScanResult:
    """
    Outcome of one structure scan.

    boundary is the end index of the first complete top-level structure, or
    None when the text ended with structures still open. In that case
    safe_point is the end of the last complete value and open_stack the
    openers still pending at that point.
    """
    boundary: Optional[int]
    safe_point: int
    open_stack: Tuple[str, ...]


@dataclass
class RecoveryResult:
    document: Dict[str, Any]
    recovered_text: str
    truncation_repaired: bool = False


class StructureScanner:
    """
    Single pass finite-state scanner over JSON-ish text.

    Keeps an explicit stack of open '{' / '[' frames. Object frames also track
    whether a value is expected (after ':') or a key (after '{' or ','), so
    that a string is only treated as a complete value when it really is one.
    """

    def scan(self, text: str) -> ScanResult:
        state = NORMAL
        stack: List[list] = []
        string_is_value = False
        token_start = None
        safe_point = 0
        safe_stack: Tuple[str, ...] = ()

        def value_expected() -> bool:
            if not stack:
                return False
            opener, awaiting_value = stack[-1]
            return opener == '[' or awaiting_value

        for index, char in enumerate(text):
            if state == IN_ESCAPE:
                state = IN_STRING
                continue

            if state == IN_STRING:
                if char == '\\':
                    state = IN_ESCAPE
                elif char == '"':
                    state = NORMAL
                    if string_is_value:
                        safe_point, safe_stack = index + 1, tuple(f[0] for f in stack)
                continue

            if token_start is not None and (char in TOKEN_DELIMITERS or char.isspace()):
                if value_expected() and VALUE_TOKEN.fullmatch(text[token_start:index]):
                    safe_point, safe_stack = index, tuple(f[0] for f in stack)
                token_start = None

            if char == '"':
                string_is_value = value_expected()
                state = IN_STRING
            elif char in '{[':
                stack.append([char, False])
                safe_point, safe_stack = index + 1, tuple(f[0] for f in stack)
            elif char in '}]':
                if stack:
                    stack.pop()
                if not stack:
                    return ScanResult(boundary=index + 1, safe_point=index + 1, open_stack=())
                safe_point, safe_stack = index + 1, tuple(f[0] for f in stack)
            elif char == ':':
                if stack and stack[-1][0] == '{':
                    stack[-1][1] = True
            elif char == ',':
                if stack and stack[-1][0] == '{':
                    stack[-1][1] = False
            elif char.isspace():
                pass
            elif token_start is None:
                token_start = index

        # A number running into the end of text may have lost digits
        if state == NORMAL and token_start is not None:
            if value_expected() and text[token_start:] in LITERALS:
                safe_point, safe_stack = len(text), tuple(f[0] for f in stack)

        return ScanResult(boundary=None, safe_point=safe_point, open_stack=safe_stack)


def strip_code_fences(text: str) -> str:
    """Remove markdown fence markers, fenced blocks and lone fences alike."""
    return FENCE_MARKER.sub('', text).strip()


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing token, outside string literals."""
    output = []
    in_string = False
    escaped = False
    length = len(text)

    for index, char in enumerate(text):
        if in_string:
            output.append(char)
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == ',':
            lookahead = index + 1
            while lookahead < length and text[lookahead].isspace():
                lookahead += 1
            if lookahead < length and text[lookahead] in '}]':
                continue
        output.append(char)

    return ''.join(output)


def close_open_structures(text: str, open_stack: Tuple[str, ...]) -> str:
    return text + ''.join(CLOSER_FOR[opener] for opener in reversed(open_stack))


class JsonRecoveryParser:
    """Best-effort decoder for model responses that should contain one JSON object."""

    def __init__(self):
        self.scanner = StructureScanner()

    def recover(self, raw_text: Optional[str], expect_truncation: bool = False) -> RecoveryResult:
        """
        Recover a JSON object from raw model text.

        Args:
            raw_text: Model response text
            expect_truncation: True when the caller reported the output token cap was hit

        Returns:
            RecoveryResult with the decoded top-level mapping

        Raises:
            StructuralDecodeFailure: carrying the best-effort text when nothing decodes
        """
        if not raw_text or not raw_text.strip():
            raise StructuralDecodeFailure("Empty model response")

        text = strip_code_fences(raw_text)

        if not expect_truncation:
            try:
                document = json.loads(text)
                if isinstance(document, dict):
                    return RecoveryResult(document=document, recovered_text=text)
            except ValueError:
                pass

        start = text.find('{')
        if start < 0:
            raise StructuralDecodeFailure("No JSON object found in model response", recovered_text=text)
        text = text[start:]

        scan = self.scanner.scan(text)
        truncated = scan.boundary is None

        if truncated:
            if not expect_truncation:
                logger.log("warning", "Model response ended inside an open structure; repairing truncation",
                           kept_chars=scan.safe_point, total_chars=len(text))
            candidate = close_open_structures(text[:scan.safe_point], scan.open_stack)
        else:
            candidate = text[:scan.boundary]

        candidate = strip_trailing_commas(candidate)

        try:
            document = json.loads(candidate, strict=False)
        except ValueError as e:
            raise StructuralDecodeFailure(f"Recovered text is not valid JSON: {e}", recovered_text=candidate)

        if not isinstance(document, dict):
            raise StructuralDecodeFailure("Recovered JSON is not an object", recovered_text=candidate)

        return RecoveryResult(document=document, recovered_text=candidate, truncation_repaired=truncated)


def recover_document(raw_text: Optional[str], expect_truncation: bool = False) -> Dict[str, Any]:
    """Convenience wrapper returning only the decoded mapping."""
    return JsonRecoveryParser().recover(raw_text, expect_truncation).document
