"""Identifier normalization for generated Python names."""

from __future__ import annotations

import keyword
import re
from collections import Counter
from collections.abc import Iterable
from typing import Optional

from .errors import IdentifierCollisionError, InvalidIdentifierError

DEFINITIONS_PREFIX = "#/definitions/"

_SNAKE_CASE_RE = re.compile(r"[a-z0-9]+(?:_[a-z][a-z0-9]*)*")


def is_snake_case(value: str) -> bool:
    """Return whether ``value`` is already in canonical snake_case.

    Canonical snake_case is lower-case words joined by single underscores,
    where every word after the first starts with a letter. The empty string
    counts as canonical.
    """
    return not value or _SNAKE_CASE_RE.fullmatch(value) is not None


def to_snake_case(value: str) -> str:
    """Convert an identifier to canonical snake_case.

    Canonical input is returned unchanged. Anything else is split into words
    at underscores and before each uppercase letter; empty words are dropped.
    A word whose first character has no single-letter uppercase form (digits,
    ``ß``) is glued onto the word before it, so that the result survives a
    round trip through camelCase.

    Examples:
        >>> to_snake_case("displayName")
        'display_name'
        >>> to_snake_case("GetAccount")
        'get_account'
        >>> to_snake_case("page_2")
        'page2'
    """
    if is_snake_case(value):
        return value

    words: list[str] = []
    for chunk in value.split("_"):
        for piece in _split_before_uppercase(chunk):
            if not piece:
                continue
            word = piece.lower()
            if words and not _can_start_word(word[0]):
                words[-1] += word
            else:
                words.append(word)
    return "_".join(words)


def to_camel_case(value: str) -> str:
    """Convert a snake_case identifier to camelCase.

    Examples:
        >>> to_camel_case("display_name")
        'displayName'
    """
    first, *rest = value.split("_")
    return first.lower() + "".join(_upper_first(segment) for segment in rest)


def to_pascal_case(value: str) -> str:
    """Convert a snake_case identifier to PascalCase.

    Examples:
        >>> to_pascal_case("get")
        'Get'
    """
    first, *rest = value.split("_")
    return _upper_first(first.lower()) + "".join(_upper_first(segment) for segment in rest)


def title_case(value: str) -> str:
    """Upper-case the first letter of every word, leaving other letters alone.

    Word boundaries are characters that are neither alphanumeric nor ``_``.
    """
    chars: list[str] = []
    at_word_start = True
    for char in value:
        chars.append(char.upper() if at_word_start else char)
        at_word_start = not (char.isalnum() or char == "_")
    return "".join(chars)


def definition_name_from_reference(ref: str) -> Optional[str]:
    """Return the definition name a local reference points at, if it is local."""
    if not ref.startswith(DEFINITIONS_PREFIX):
        return None
    name = ref[len(DEFINITIONS_PREFIX) :]
    return name or None


def class_name_from_reference(ref: str) -> str:
    """Derive the generated class name for a ``#/definitions/...`` reference."""
    return title_case(ref.removeprefix(DEFINITIONS_PREFIX))


def strip_newlines(text: str) -> str:
    """Collapse a multi-line description into a single docstring line."""
    return text.replace("\r\n", " ").replace("\n", " ").strip()


def strip_operation_prefix(operation_id: str, prefix: Optional[str]) -> str:
    """Drop a service-wide prefix such as ``Nakama_`` from an operation id."""
    if prefix and operation_id.startswith(prefix):
        return operation_id[len(prefix) :]
    return operation_id


def python_identifier(
    candidate: str,
    *,
    source_name: str,
    reserved: frozenset[str] = frozenset(),
    location: Optional[str] = None,
) -> str:
    """Escape a normalized name for Python and check that it is usable.

    Keywords get a trailing underscore, reserved names a ``_field`` suffix.
    Anything that is still not an identifier is rejected.
    """
    if keyword.iskeyword(candidate):
        candidate = f"{candidate}_"
    elif candidate in reserved:
        candidate = f"{candidate}_field"
    if not candidate.isidentifier():
        raise InvalidIdentifierError(candidate, source_name, location)
    return candidate


def ensure_unique(
    names: Iterable[tuple[str, str]],
    *,
    location: Optional[str] = None,
) -> None:
    """Reject normalized names that collide.

    Args:
        names (Iterable[tuple[str, str]]): ``(identifier, source_name)`` pairs.
        location (Optional[str]): Where the names come from, for error messages.
    """
    pairs = list(names)
    counts = Counter(identifier for identifier, _ in pairs)
    for identifier, count in counts.items():
        if count < 2:
            continue
        sources = tuple(source for name, source in pairs if name == identifier)
        raise IdentifierCollisionError(identifier, sources, location)


def _upper_first(segment: str) -> str:
    return segment[:1].upper() + segment[1:]


def _split_before_uppercase(chunk: str) -> list[str]:
    pieces = [""]
    for char in chunk:
        if char.isupper():
            pieces.append(char)
        else:
            pieces[-1] += char
    return pieces


def _can_start_word(char: str) -> bool:
    # camelCase marks the word boundary with this character's uppercase form.
    upper = char.upper()
    return len(upper) == 1 and upper.isupper() and upper.lower() == char
