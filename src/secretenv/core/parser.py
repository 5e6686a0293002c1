"""Secret reference parsing.

Two surface syntaxes are recognized:

- Delimited: ``{{op://vault/item/field}}``. Everything between the markers is
  the reference text, taken verbatim. This is the only unambiguous syntax and
  the one new configuration should use.
- Bare (legacy): ``op://vault/item/field`` with no markers. A bare reference is
  only recognized when it is the whole value or a whitespace-delimited token,
  and only when it has three or four path segments. Bare references embedded
  in other text (``https://host/op://v/i/f/tail``) cannot be delimited
  reliably, so they are refused with a `ParseError` rather than guessed.

Bare parsing is never attempted in a value that contains a ``{{`` marker.
"""

import logging
import re
from collections.abc import Sequence
from functools import lru_cache

from .errors import ParseError
from .types import ReferenceSyntax, SecretReference

logger = logging.getLogger(__name__)

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"

DEFAULT_BARE_SCHEMES: tuple[str, ...] = ("op://",)

# vault/item/field or vault/item/section/field
MIN_BARE_SEGMENTS = 3
MAX_BARE_SEGMENTS = 4

_TOKEN_PATTERN = re.compile(r"\S+")


def parse_references(
    value: str,
    bare_schemes: Sequence[str] = DEFAULT_BARE_SCHEMES,
    allow_bare: bool = True,
) -> list[SecretReference]:
    """Locate the secret references in a value.

    Args:
        value: The string to scan
        bare_schemes: Scheme prefixes recognized without delimiters
        allow_bare: Whether to look for bare references at all

    Returns:
        References ordered by position; spans never overlap. An empty list
        means the value contains no references and passes through unchanged.

    Raises:
        ParseError: If delimiters are unterminated, nested or empty, or a bare
            reference cannot be delimited unambiguously
    """
    if OPEN_DELIMITER in value:
        return _parse_delimited(value)
    if allow_bare and bare_schemes:
        return _parse_bare(value, tuple(bare_schemes))
    return []


def contains_references(
    value: str,
    bare_schemes: Sequence[str] = DEFAULT_BARE_SCHEMES,
    allow_bare: bool = True,
) -> bool:
    """Check whether a value looks like it holds secret references.

    This is a cheap pre-check that never raises; malformed values count as
    containing references so the caller still parses and reports them.
    """
    if OPEN_DELIMITER in value:
        return True
    if not allow_bare:
        return False
    return any(_scheme_pattern(scheme).search(value) for scheme in bare_schemes)


def substitute_references(
    value: str, references: Sequence[SecretReference], replacements: dict[str, str]
) -> str:
    """Replace each reference span with the value resolved for its text.

    Spans are replaced from right to left so earlier offsets stay valid.
    """
    result = value
    for reference in sorted(references, key=lambda ref: ref.start, reverse=True):
        result = result[: reference.start] + replacements[reference.text] + result[reference.end :]
    return result


def _parse_delimited(value: str) -> list[SecretReference]:
    references: list[SecretReference] = []
    position = 0

    while True:
        start = value.find(OPEN_DELIMITER, position)
        if start == -1:
            break

        text_start = start + len(OPEN_DELIMITER)
        end = value.find(CLOSE_DELIMITER, text_start)
        if end == -1:
            raise ParseError("Unterminated '{{' delimiter", position=start)

        nested = value.find(OPEN_DELIMITER, text_start, end)
        if nested != -1:
            raise ParseError("Nested '{{' delimiter inside a reference", position=nested)

        text = value[text_start:end]
        if not text.strip():
            raise ParseError("Empty '{{}}' reference", position=start)

        span_end = end + len(CLOSE_DELIMITER)
        references.append(SecretReference(start, span_end, ReferenceSyntax.DELIMITED, text))
        logger.debug(f"Found delimited reference: {text}")
        position = span_end

    return references


def _parse_bare(value: str, schemes: tuple[str, ...]) -> list[SecretReference]:
    occurrences = [
        (match.start(), scheme)
        for scheme in schemes
        for match in _scheme_pattern(scheme).finditer(value)
    ]
    if not occurrences:
        return []

    # A value that is exactly one reference may contain spaces in its names,
    # e.g. "op://Private/My Item/API Key". When the first token is already a
    # complete reference ("op://v/i/f --verbose"), the space ends it instead.
    stripped = value.strip()
    offset = len(value) - len(value.lstrip())
    if len(occurrences) == 1:
        start, scheme = occurrences[0]
        first_token = stripped.split(None, 1)[0] if stripped else ""
        whole_value = first_token == stripped or not _has_valid_segments(first_token, scheme)
        if start == offset and whole_value and _has_valid_segments(stripped, scheme):
            logger.debug(f"Found bare reference spanning the whole value: {stripped}")
            return [SecretReference(offset, offset + len(stripped), ReferenceSyntax.BARE, stripped)]

    references: list[SecretReference] = []
    claimed: set[int] = set()
    for match in _TOKEN_PATTERN.finditer(value):
        token = match.group(0)
        scheme = next((s for s in schemes if token.startswith(s)), None)
        if scheme is None:
            continue
        if not _has_valid_segments(token, scheme) or _scheme_count(token, schemes) > 1:
            raise ParseError(
                "Ambiguous bare reference; wrap it in '{{...}}'", position=match.start()
            )
        references.append(
            SecretReference(match.start(), match.end(), ReferenceSyntax.BARE, token)
        )
        claimed.add(match.start())
        logger.debug(f"Found bare reference: {token}")

    for start, _scheme in occurrences:
        if start not in claimed:
            raise ParseError(
                "Bare reference embedded in surrounding text is ambiguous; "
                "wrap it in '{{...}}'",
                position=start,
            )

    return references


def _has_valid_segments(reference: str, scheme: str) -> bool:
    path = reference[len(scheme) :].split("?", 1)[0]
    segments = path.split("/")
    return MIN_BARE_SEGMENTS <= len(segments) <= MAX_BARE_SEGMENTS and all(
        segment.strip() for segment in segments
    )


def _scheme_count(token: str, schemes: tuple[str, ...]) -> int:
    return sum(len(_scheme_pattern(scheme).findall(token)) for scheme in schemes)


@lru_cache(maxsize=None)
def _scheme_pattern(scheme: str) -> re.Pattern[str]:
    # "top://" must not count as an "op://" occurrence
    return re.compile(r"(?<![A-Za-z0-9+.\-])" + re.escape(scheme))
