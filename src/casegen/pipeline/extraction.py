"""Recovery of a structured JSON value from free-form model output.

Model replies often wrap the JSON in commentary or markdown fences, or are cut
short by the token limit. Recovery runs an ordered list of pure strategies,
each a `(text) -> value | None` function, and keeps the first object or array
that parses. Strategies return None when they do not apply and raise
`ValueError` when they apply but cannot produce a value. Truncated JSON is
never repaired.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import dataclasses
import json
import logging
import re
import typing

from casegen.constants import MAX_REPLY_CHARS
from casegen.core.schema import declared_fields
from casegen.exceptions import ExtractionFailure

if typing.TYPE_CHECKING:
    from casegen.core.types import JSONValue

log = logging.getLogger(__name__)

type Strategy = Callable[[str], JSONValue | None]

OPENERS = "{["
CLOSERS = "}]"
_PAIRS = {"}": "{", "]": "["}

EXPLANATORY_PREFIXES = (
    "here is the",
    "here's the",
    "based on",
    "below is",
    "sure",
    "certainly",
    "the following",
)

_FENCE_RE = re.compile(r"```[ \t]*[\w+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
_FENCE_OPEN_RE = re.compile(r"```[ \t]*[\w+-]*[ \t]*\r?\n?")


# --- Diagnostics ---


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractionAttempt:
    """Outcome of one strategy."""

    strategy: str
    success: bool
    value: JSONValue | None = None
    error: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractionDiagnostics:
    """Delimiter statistics and per-strategy outcomes for a failed reply."""

    content_length: int
    open_braces: int
    close_braces: int
    open_brackets: int
    close_brackets: int
    first_open_at: int | None
    last_close_at: int | None
    attempts: tuple[ExtractionAttempt, ...]

    @classmethod
    def from_text(
        cls, text: str, attempts: Sequence[ExtractionAttempt]
    ) -> ExtractionDiagnostics:
        return cls(
            content_length=len(text),
            open_braces=text.count("{"),
            close_braces=text.count("}"),
            open_brackets=text.count("["),
            close_brackets=text.count("]"),
            first_open_at=_first_index(text, OPENERS),
            last_close_at=_last_index(text, CLOSERS),
            attempts=tuple(attempts),
        )

    def summary(self) -> str:
        tried = ", ".join(
            f"{a.strategy}={'ok' if a.success else a.error}" for a in self.attempts
        )
        return (
            f"length={self.content_length} "
            f"braces={self.open_braces}/{self.close_braces} "
            f"brackets={self.open_brackets}/{self.close_brackets} "
            f"first_open={self.first_open_at} last_close={self.last_close_at} "
            f"attempts=[{tried}]"
        )


# --- Helpers ---


def _first_index(text: str, chars: str) -> int | None:
    positions = [i for i in (text.find(c) for c in chars) if i != -1]
    return min(positions) if positions else None


def _last_index(text: str, chars: str) -> int | None:
    position = max(text.rfind(c) for c in chars)
    return position if position != -1 else None


def _reject_constant(name: str) -> typing.NoReturn:
    raise ValueError(f"{name} is not a JSON number")


def _parse_structured(text: str) -> JSONValue:
    """Parse text as strict JSON, accepting only objects and arrays.

    NaN and Infinity are rejected, and nesting too deep for the decoder
    counts as a parse failure.
    """
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except RecursionError:
        raise ValueError("nesting too deep to decode") from None
    if not isinstance(value, dict | list):
        raise ValueError(f"parsed a {type(value).__name__}, not an object or array")
    return value


class UnclosedSpan(ValueError):
    """The text ended before a span's opening delimiter was closed."""


def _scan_balanced(text: str, start: int) -> int:
    """Index just past the span that closes the delimiter at `start`.

    Delimiters inside JSON strings are ignored and backslash escapes are
    honoured.

    Raises:
        ValueError: On a mismatched closer.
        UnclosedSpan: When the text ends first.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in OPENERS:
            stack.append(ch)
        elif ch in CLOSERS:
            if not stack or stack[-1] != _PAIRS[ch]:
                raise ValueError(f"mismatched {ch!r} at offset {i}")
            stack.pop()
            if not stack:
                return i + 1
    raise UnclosedSpan(f"text ends inside an unclosed span (depth {len(stack)})")


# --- Strategies ---


def direct(text: str) -> JSONValue | None:
    stripped = text.strip()
    if not stripped:
        return None
    return _parse_structured(stripped)


def prefix_stripped(text: str) -> JSONValue | None:
    start = _first_index(text, OPENERS)
    if start is None:
        return None
    head = text[:start].lower()
    if not any(prefix in head for prefix in EXPLANATORY_PREFIXES):
        return None
    return _parse_structured(text[start:].strip())


def fence_stripped(text: str) -> JSONValue | None:
    match = _FENCE_RE.search(text)
    if match:
        return _parse_structured(match.group(1).strip())
    opening = _FENCE_OPEN_RE.search(text)
    if opening is None:
        return None
    # Unterminated fence: drop the marker and parse the rest.
    return _parse_structured(text[opening.end() :].strip())


def balanced_scan(text: str) -> JSONValue | None:
    start = _first_index(text, OPENERS)
    if start is None:
        return None
    end = _scan_balanced(text, start)
    return _parse_structured(text[start:end])


def _top_level_spans(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    i = 0
    while True:
        start = _first_index(text[i:], OPENERS)
        if start is None:
            return spans
        start += i
        try:
            end = _scan_balanced(text, start)
        except UnclosedSpan:
            # Nothing after an unclosed opener is top level.
            return spans
        except ValueError:
            i = start + 1
            continue
        spans.append((start, end))
        i = end


def largest_candidate(text: str) -> JSONValue | None:
    spans = _top_level_spans(text)
    if not spans:
        return None
    start, end = max(spans, key=lambda span: span[1] - span[0])
    return _parse_structured(text[start:end])


def outer_bound(text: str) -> JSONValue | None:
    start = _first_index(text, OPENERS)
    end = _last_index(text, CLOSERS)
    if start is None or end is None or end < start:
        return None
    return _parse_structured(text[start : end + 1])


DEFAULT_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("direct", direct),
    ("prefix_stripped", prefix_stripped),
    ("fence_stripped", fence_stripped),
    ("balanced_scan", balanced_scan),
    ("largest_candidate", largest_candidate),
    ("outer_bound", outer_bound),
)


# --- Extractor ---


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    value: JSONValue
    strategy: str
    attempts: tuple[ExtractionAttempt, ...]


class ResponseExtractor:
    """Runs the strategy chain over a reply and reports what happened."""

    def __init__(
        self,
        strategies: Sequence[tuple[str, Strategy]] = DEFAULT_STRATEGIES,
        *,
        max_chars: int = MAX_REPLY_CHARS,
    ) -> None:
        self.strategies = tuple(strategies)
        self.max_chars = max_chars

    def extract_with_details(
        self, raw_text: str, schema: Mapping[str, typing.Any] | None = None
    ) -> ExtractionOutcome:
        """Recover a value and name the strategy that produced it.

        Raises:
            ExtractionFailure: If no strategy yields an object or array. The
                diagnostics are attached to the exception and logged.
        """
        if len(raw_text) > self.max_chars:
            diagnostics = ExtractionDiagnostics.from_text(raw_text, ())
            log.warning(
                "Reply of %d chars exceeds the %d char limit; not parsed",
                len(raw_text),
                self.max_chars,
            )
            raise ExtractionFailure(diagnostics)

        attempts: list[ExtractionAttempt] = []
        for name, strategy in self.strategies:
            try:
                value = strategy(raw_text)
            except ValueError as e:
                attempts.append(ExtractionAttempt(name, success=False, error=str(e)))
                continue
            if value is None:
                attempts.append(
                    ExtractionAttempt(name, success=False, error="not applicable")
                )
                continue
            attempts.append(ExtractionAttempt(name, success=True, value=value))
            log.debug("Extracted structured value with strategy %s", name)
            if schema:
                self._log_missing_fields(value, schema)
            return ExtractionOutcome(value, name, tuple(attempts))

        diagnostics = ExtractionDiagnostics.from_text(raw_text, attempts)
        log.warning("Could not extract JSON from reply: %s", diagnostics.summary())
        raise ExtractionFailure(diagnostics)

    def extract(
        self, raw_text: str, schema: Mapping[str, typing.Any] | None = None
    ) -> JSONValue:
        return self.extract_with_details(raw_text, schema).value

    @staticmethod
    def _log_missing_fields(value: JSONValue, schema: Mapping[str, typing.Any]) -> None:
        if not isinstance(value, dict):
            return
        missing = [name for name in declared_fields(schema) if name not in value]
        if missing:
            log.debug("Extracted value is missing declared fields: %s", missing)


_default_extractor = ResponseExtractor()


def extract(raw_text: str, schema: Mapping[str, typing.Any] | None = None) -> JSONValue:
    """Recover a structured value from `raw_text` with the default strategies."""
    return _default_extractor.extract(raw_text, schema)
