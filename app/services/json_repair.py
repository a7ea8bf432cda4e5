"""Recover JSON values from free-form model output.

Models asked for JSON still wrap it in Markdown fences, add a sentence of
commentary, or leave a trailing comma behind.  :func:`extract_json` walks an
ordered list of named strategies, each yielding candidate strings, and
returns the first candidate that parses.  Repairs only touch syntactic noise:
text that is already valid JSON is returned by the first strategy untouched.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .errors import ModelOutputNotJSON

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^[ \t]*```[\w+.-]*[ \t]*\r?\n?", re.MULTILINE)
_FENCE = "```"
_CLOSERS = {"{": "}", "[": "]"}
_MAX_SPAN_CANDIDATES = 20


# ---------------------------------------------------------------------------
# Individual repairs
# ---------------------------------------------------------------------------

def strip_fences(text: str) -> str:
    """Remove the first opening fence marker and the last closing one."""

    stripped = _OPENING_FENCE.sub("", text, count=1)
    closing = stripped.rfind(_FENCE)
    if closing != -1:
        stripped = stripped[:closing] + stripped[closing + len(_FENCE):]
    return stripped.strip()


def trim_to_json_bounds(text: str) -> str:
    """Drop anything before the first ``{``/``[`` and after the last ``}``/``]``."""

    starts = [index for index in (text.find("{"), text.find("[")) if index != -1]
    end = max(text.rfind("}"), text.rfind("]"))
    if not starts or end == -1:
        return text
    start = min(starts)
    if end < start:
        return text
    return text[start : end + 1]


def remove_trailing_commas(text: str) -> str:
    """Delete commas that directly precede a closing bracket, outside strings."""

    out: List[str] = []
    in_string = False
    escaped = False
    length = len(text)
    for index, char in enumerate(text):
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            lookahead = index + 1
            while lookahead < length and text[lookahead].isspace():
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                continue
        out.append(char)
    return "".join(out)


def insert_missing_commas(text: str) -> str:
    """Insert commas between adjacent ``][`` and ``}{`` pairs, outside strings."""

    out: List[str] = []
    in_string = False
    escaped = False
    previous: Optional[str] = None
    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
                previous = char
            continue
        if char in _CLOSERS and previous == _CLOSERS[char]:
            out.append(",")
        if char == '"':
            in_string = True
        out.append(char)
        if not char.isspace():
            previous = char
    return "".join(out)


def repair_syntax(text: str) -> str:
    return insert_missing_commas(remove_trailing_commas(trim_to_json_bounds(text)))


def balanced_spans(text: str) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` of every balanced bracket span, largest first.

    String literals are only tracked inside brackets, so quotes in the
    surrounding prose cannot confuse the matcher.
    """

    spans: List[Tuple[int, int]] = []
    stack: List[Tuple[str, int]] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and stack:
            in_string = True
        elif char in _CLOSERS:
            stack.append((_CLOSERS[char], index))
        elif char in "}]" and stack:
            expected, start = stack.pop()
            if expected != char:
                stack.clear()
                continue
            spans.append((start, index + 1))
    spans.sort(key=lambda span: (-(span[1] - span[0]), span[0]))
    return spans


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _direct(text: str) -> Iterator[str]:
    yield text


def _fence_stripped(text: str) -> Iterator[str]:
    yield strip_fences(text)


def _syntax_repaired(text: str) -> Iterator[str]:
    yield repair_syntax(strip_fences(text))


def _bracket_matched(text: str) -> Iterator[str]:
    stripped = strip_fences(text)
    for start, end in balanced_spans(stripped)[:_MAX_SPAN_CANDIDATES]:
        candidate = stripped[start:end]
        yield candidate
        yield insert_missing_commas(remove_trailing_commas(candidate))


Strategy = Tuple[str, Callable[[str], Iterator[str]]]

STRATEGIES: Tuple[Strategy, ...] = (
    ("direct", _direct),
    ("strip_fences", _fence_stripped),
    ("repair_syntax", _syntax_repaired),
    ("bracket_match", _bracket_matched),
)


def extract_json_with_strategy(raw_text: str) -> Tuple[Any, str]:
    """Parse ``raw_text`` and report which strategy succeeded."""

    last_error: Optional[Exception] = None
    seen: set[str] = set()
    for name, strategy in STRATEGIES:
        for candidate in strategy(raw_text or ""):
            if not candidate.strip() or candidate in seen:
                continue
            seen.add(candidate)
            try:
                value = json.loads(candidate)
            except (ValueError, RecursionError) as exc:
                # RecursionError: nesting deeper than the decoder allows.
                last_error = exc
                continue
            if name != "direct":
                logger.debug("Recovered model JSON using the %s strategy", name)
            return value, name
    raise ModelOutputNotJSON(raw_text, last_error)


def extract_json(raw_text: str) -> Any:
    """Return the JSON value carried by ``raw_text`` or raise ``ModelOutputNotJSON``."""

    value, _ = extract_json_with_strategy(raw_text)
    return value
