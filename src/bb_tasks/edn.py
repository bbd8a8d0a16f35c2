"""Tagged value tree for decoded EDN documents.

`edn_format` does the lexing and parsing. Its native objects (ImmutableDict,
Keyword, Symbol, ...) are converted into `EdnValue` nodes so the rest of the
package never depends on the decoder's Python types.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import edn_format

from bb_tasks.errors import TaskFileParseError


class EdnKind(str, Enum):
    """Variant tag for a decoded EDN value."""

    NIL = "nil"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    KEYWORD = "keyword"
    SYMBOL = "symbol"
    LIST = "list"
    VECTOR = "vector"
    SET = "set"
    MAP = "map"
    TAGGED = "tagged"


@dataclass(frozen=True, slots=True)
class EdnValue:
    """One node of the decoded tree.

    Collections keep their children in `value` as a tuple. Maps hold a tuple of
    `(key, value)` pairs in document order; keywords and symbols hold their
    name without the leading colon.
    """

    kind: EdnKind
    value: Any = None

    @classmethod
    def keyword(cls, name: str) -> EdnValue:
        return cls(EdnKind.KEYWORD, name)

    @property
    def is_map(self) -> bool:
        return self.kind is EdnKind.MAP

    def items(self) -> Iterator[tuple[EdnValue, EdnValue]]:
        """Iterate map entries in document order."""

        if not self.is_map:
            raise TypeError(f"EDN {self.kind.value} is not a map")
        yield from self.value

    def get(self, key: EdnValue, default: EdnValue | None = None) -> EdnValue | None:
        """Look up a map entry by key, returning `default` when absent."""

        for entry_key, entry_value in self.items():
            if entry_key == key:
                return entry_value
        return default

    def name(self) -> str:
        """Human-readable name of a scalar, as used for task names."""

        if self.kind in (EdnKind.KEYWORD, EdnKind.SYMBOL, EdnKind.STRING):
            return str(self.value)
        if self.kind is EdnKind.NIL:
            return "nil"
        if self.kind is EdnKind.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)


NIL = EdnValue(EdnKind.NIL)


def decode(text: str, *, path: Path | None = None) -> EdnValue:
    """Decode the first top-level form of `text`.

    An empty document decodes to `nil`. Decoder failures are re-raised as
    `TaskFileParseError` carrying the decoder's reason.
    """

    if not text.strip():
        return NIL
    try:
        raw = edn_format.loads(text)
    except (edn_format.EDNDecodeError, ValueError, NotImplementedError) as error:
        raise TaskFileParseError(path, _reason(error)) from error
    return from_native(raw)


def from_native(raw: Any) -> EdnValue:  # noqa: PLR0911
    """Convert an `edn_format` object into an `EdnValue` tree."""

    if raw is None:
        return NIL
    if isinstance(raw, bool):
        return EdnValue(EdnKind.BOOLEAN, raw)
    if isinstance(raw, int):
        return EdnValue(EdnKind.INTEGER, raw)
    if isinstance(raw, (float, Decimal)):
        return EdnValue(EdnKind.FLOAT, raw)
    if isinstance(raw, edn_format.Keyword):
        return EdnValue(EdnKind.KEYWORD, _symbol_text(raw, strip_colon=True))
    if isinstance(raw, edn_format.Symbol):
        return EdnValue(EdnKind.SYMBOL, _symbol_text(raw, strip_colon=False))
    if isinstance(raw, str):
        return EdnValue(EdnKind.STRING, raw)
    if isinstance(raw, Mapping):
        return EdnValue(
            EdnKind.MAP,
            tuple((from_native(key), from_native(value)) for key, value in raw.items()),
        )
    if isinstance(raw, edn_format.ImmutableList):
        return EdnValue(EdnKind.VECTOR, tuple(from_native(item) for item in raw))
    if isinstance(raw, (frozenset, set)):
        return EdnValue(EdnKind.SET, tuple(from_native(item) for item in raw))
    if isinstance(raw, (tuple, list)):
        return EdnValue(EdnKind.LIST, tuple(from_native(item) for item in raw))
    # #inst, #uuid and registered tags decode to plain Python objects.
    return EdnValue(EdnKind.TAGGED, raw)


def _symbol_text(raw: Any, *, strip_colon: bool) -> str:
    text = str(raw)
    if strip_colon and text.startswith(":"):
        return text[1:]
    return text


def _reason(error: Exception) -> str:
    message = str(error).strip()
    return message or error.__class__.__name__
