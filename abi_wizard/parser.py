"""Turn operator-typed text into typed values.

Scalars are read literally: integers in base 10, addresses, hashes and bytes
as hex with an optional ``0x`` prefix, strings verbatim.  Composite literals
use brackets for arrays (``[1,2,3]``, brackets optional at the top level) and
parentheses for tuples (``(1,0xabc...,true)``).  Members are separated by
commas at nesting depth zero, so ``[(1,2),(3,4)]`` is a two element array.
"""

from __future__ import annotations

import logging
import re
from typing import List

from .abi_types import (
    AbiType,
    AddressType,
    AddressValue,
    ArityMismatch,
    ArrayType,
    ArrayValue,
    BoolType,
    BoolValue,
    BytesType,
    BytesValue,
    FixedBytesType,
    HashType,
    HashValue,
    IntType,
    IntValue,
    MalformedLiteral,
    StringType,
    StringValue,
    TupleType,
    TupleValue,
    TypeMismatch,
    TypedValue,
    UIntType,
    UnsupportedTypeError,
    format_type,
)

logger = logging.getLogger(__name__)

# 2**256 - 1 has 78 decimal digits.
_MAX_INT_DIGITS = 78
_DECIMAL_RE = re.compile(r"^-?[0-9]+$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")

_OPENERS = {"[": "]", "(": ")"}
_CLOSERS = {"]": "[", ")": "("}


def parse_value(text: str, t: AbiType) -> TypedValue:
    """Parse ``text`` against descriptor ``t``.

    Raises :class:`TypeMismatch`, :class:`MalformedLiteral` or
    :class:`ArityMismatch`; nothing is ever silently defaulted except the
    boolean rule below.
    """

    if isinstance(t, ArrayType):
        return _parse_array(text, t)
    if isinstance(t, TupleType):
        return _parse_tuple(text, t)
    if isinstance(t, StringType):
        return StringValue(text)

    raw = text.strip()
    if raw[:1] in _OPENERS:
        raise TypeMismatch(f"composite literal {raw!r} given for {format_type(t)}")

    if isinstance(t, (UIntType, IntType)):
        # A minus sign on an unsigned slot is left for the encoder to reject.
        if not _DECIMAL_RE.fullmatch(raw):
            raise MalformedLiteral(f"{raw!r} is not a base-10 integer")
        digits = raw.lstrip("-").lstrip("0")
        if len(digits) > _MAX_INT_DIGITS:
            raise MalformedLiteral(f"integer literal has {len(digits)} digits, more than 256 bits can hold")
        value = int(digits or "0", 10)
        return IntValue(-value if raw.startswith("-") else value)
    if isinstance(t, BoolType):
        if raw not in {"true", "false"}:
            logger.warning("Treating boolean literal %r as false", raw)
        return BoolValue(raw == "true")
    if isinstance(t, AddressType):
        data = _parse_hex(raw, expected=20, label="address")
        return AddressValue("0x" + data.hex())
    if isinstance(t, HashType):
        return HashValue(_parse_hex(raw, expected=32, label="hash"))
    if isinstance(t, FixedBytesType):
        return BytesValue(_parse_hex(raw, expected=t.size, label=f"bytes{t.size}"))
    if isinstance(t, BytesType):
        return BytesValue(_parse_hex(raw, expected=None, label="bytes"))
    raise UnsupportedTypeError(f"cannot parse values for {t!r}")


def _parse_hex(raw: str, *, expected: int | None, label: str) -> bytes:
    digits = raw[2:] if raw[:2].lower() == "0x" else raw
    if not _HEX_RE.fullmatch(digits):
        raise MalformedLiteral(f"{label} value {raw!r} is not hexadecimal")
    if len(digits) % 2 != 0:
        raise MalformedLiteral(f"{label} value {raw!r} has an odd number of hex digits")
    data = bytes.fromhex(digits)
    if expected is not None and len(data) != expected:
        raise MalformedLiteral(
            f"{label} value must be exactly {expected} bytes, got {len(data)}"
        )
    return data


def _parse_array(text: str, t: ArrayType) -> ArrayValue:
    body = text.strip()
    if _is_enclosed(body, "(") and not isinstance(t.element, TupleType):
        raise TypeMismatch(f"tuple literal {body!r} given for {format_type(t)}")
    body = _strip_enclosing(body, "[")
    parts = split_top_level(body)
    if t.length is not None and len(parts) != t.length:
        raise ArityMismatch(
            f"{format_type(t)} expects {t.length} elements, got {len(parts)}"
        )
    return ArrayValue(tuple(parse_value(part, t.element) for part in parts))


def _parse_tuple(text: str, t: TupleType) -> TupleValue:
    body = text.strip()
    if _is_enclosed(body, "["):
        raise TypeMismatch(f"array literal {body!r} given for {format_type(t)}")
    body = _strip_enclosing(body, "(")
    parts = split_top_level(body)
    if len(parts) != len(t.components):
        raise ArityMismatch(
            f"{format_type(t)} expects {len(t.components)} members, got {len(parts)}"
        )
    return TupleValue(
        tuple(
            (name, parse_value(part, member))
            for (name, member), part in zip(t.components, parts)
        )
    )


def split_top_level(body: str) -> List[str]:
    """Split ``body`` on commas that are not nested in brackets or parentheses.

    Blank input yields no segments.
    """

    if not body.strip():
        return []
    out: List[str] = []
    stack: List[str] = []
    token_start = 0
    for idx, ch in enumerate(body):
        if ch in _OPENERS:
            stack.append(ch)
        elif ch in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[ch]:
                raise MalformedLiteral(f"unbalanced {ch!r} in {body!r}")
            stack.pop()
        elif ch == "," and not stack:
            out.append(body[token_start:idx].strip())
            token_start = idx + 1
    if stack:
        raise MalformedLiteral(f"unclosed {stack[-1]!r} in {body!r}")
    out.append(body[token_start:].strip())
    return out


def _is_enclosed(body: str, opener: str) -> bool:
    """True when ``body`` is one ``opener`` group spanning the whole text."""

    if not body.startswith(opener) or not body.endswith(_OPENERS[opener]):
        return False
    depth = 0
    for idx, ch in enumerate(body):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0 and idx != len(body) - 1:
                return False
    return depth == 0


def _strip_enclosing(body: str, opener: str) -> str:
    if _is_enclosed(body, opener):
        return body[1:-1]
    return body
