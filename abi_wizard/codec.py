"""Contract ABI encoding of typed values and decoding of return data.

The layout follows the Solidity ABI: every argument list is encoded as a
tuple whose head holds static values inline and 32-byte offsets for dynamic
ones; the offsets point into the tail, counted from the start of that tuple.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .abi_types import (
    AbiType,
    AddressType,
    AddressValue,
    ArrayType,
    ArrayValue,
    BoolType,
    BoolValue,
    BytesType,
    BytesValue,
    DecodingError,
    EncodingError,
    FixedBytesType,
    HashType,
    HashValue,
    IntType,
    IntValue,
    StringType,
    StringValue,
    TupleType,
    TupleValue,
    TypedValue,
    UIntType,
    format_type,
    head_size,
    is_dynamic,
)

WORD_SIZE = 32


def _to_word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big", signed=False)


def _left_pad(data: bytes) -> bytes:
    return b"\x00" * (WORD_SIZE - len(data)) + data


def _right_pad(data: bytes) -> bytes:
    pad = (WORD_SIZE - (len(data) % WORD_SIZE)) % WORD_SIZE
    return data + (b"\x00" * pad)


def _mismatch(t: AbiType, value: TypedValue) -> EncodingError:
    return EncodingError(
        f"{type(value).__name__} cannot be encoded as {format_type(t)}"
    )


def encode_value(t: AbiType, value: TypedValue) -> bytes:
    """Encode a single value against its slot descriptor."""

    if isinstance(t, UIntType):
        if not isinstance(value, IntValue):
            raise _mismatch(t, value)
        if value.value < 0:
            raise EncodingError(f"{format_type(t)} cannot be negative: {value.value}")
        if value.value >= (1 << t.bits):
            raise EncodingError(f"{value.value} exceeds {format_type(t)}")
        return _to_word(value.value)

    if isinstance(t, IntType):
        if not isinstance(value, IntValue):
            raise _mismatch(t, value)
        min_v = -(1 << (t.bits - 1))
        max_v = (1 << (t.bits - 1)) - 1
        if value.value < min_v or value.value > max_v:
            raise EncodingError(f"{value.value} exceeds {format_type(t)}")
        return value.value.to_bytes(WORD_SIZE, "big", signed=True)

    if isinstance(t, BoolType):
        if not isinstance(value, BoolValue):
            raise _mismatch(t, value)
        return _to_word(1 if value.value else 0)

    if isinstance(t, AddressType):
        if not isinstance(value, AddressValue):
            raise _mismatch(t, value)
        raw = value.raw
        if len(raw) != 20:
            raise EncodingError("address must be exactly 20 bytes")
        return _left_pad(raw)

    if isinstance(t, HashType):
        if not isinstance(value, HashValue):
            raise _mismatch(t, value)
        if len(value.value) != WORD_SIZE:
            raise EncodingError("hash must be exactly 32 bytes")
        return value.value

    if isinstance(t, FixedBytesType):
        if not isinstance(value, BytesValue):
            raise _mismatch(t, value)
        if len(value.value) != t.size:
            raise EncodingError(
                f"bytes{t.size} must be exactly {t.size} bytes, got {len(value.value)}"
            )
        return _right_pad(value.value)

    if isinstance(t, BytesType):
        if not isinstance(value, BytesValue):
            raise _mismatch(t, value)
        return _to_word(len(value.value)) + _right_pad(value.value)

    if isinstance(t, StringType):
        if not isinstance(value, StringValue):
            raise _mismatch(t, value)
        raw = value.value.encode("utf-8")
        return _to_word(len(raw)) + _right_pad(raw)

    if isinstance(t, ArrayType):
        if not isinstance(value, ArrayValue):
            raise _mismatch(t, value)
        if t.length is not None and len(value.items) != t.length:
            raise EncodingError(
                f"{format_type(t)} expects {t.length} elements, got {len(value.items)}"
            )
        body = encode_values([t.element] * len(value.items), value.items)
        if t.length is None:
            return _to_word(len(value.items)) + body
        return body

    if isinstance(t, TupleType):
        if not isinstance(value, TupleValue):
            raise _mismatch(t, value)
        if len(value.members) != len(t.components):
            raise EncodingError(
                f"{format_type(t)} expects {len(t.components)} members, got {len(value.members)}"
            )
        return encode_values(
            [member for _, member in t.components],
            [member for _, member in value.members],
        )

    raise EncodingError(f"unsupported descriptor: {t!r}")


def encode_values(types: Sequence[AbiType], values: Sequence[TypedValue]) -> bytes:
    """Encode ``values`` as one head/tail block."""

    if len(types) != len(values):
        raise EncodingError(f"expected {len(types)} values, got {len(values)}")

    head_parts: List[bytes] = []
    tail_parts: List[bytes] = []
    head_len = sum(head_size(t) for t in types)
    tail_len = 0

    for t, value in zip(types, values):
        encoded = encode_value(t, value)
        if is_dynamic(t):
            head_parts.append(_to_word(head_len + tail_len))
            tail_parts.append(encoded)
            tail_len += len(encoded)
        else:
            head_parts.append(encoded)

    return b"".join(head_parts + tail_parts)


def encode_call(selector: bytes, types: Sequence[AbiType], values: Sequence[TypedValue]) -> bytes:
    """Return ``selector`` followed by the encoded arguments."""

    if len(selector) != 4:
        raise EncodingError("selector must be exactly 4 bytes")
    if not types and not values:
        return bytes(selector)
    return bytes(selector) + encode_values(types, values)


# Decoding ------------------------------------------------------------------


def _read_word(data: bytes, offset: int) -> bytes:
    if offset < 0 or offset + WORD_SIZE > len(data):
        raise DecodingError("data too short for ABI word")
    return data[offset : offset + WORD_SIZE]


def _read_int(data: bytes, offset: int) -> int:
    return int.from_bytes(_read_word(data, offset), "big")


def decode_value(t: AbiType, data: bytes, offset: int = 0) -> TypedValue:
    """Decode a value of type ``t`` whose head starts at ``offset``.

    For dynamic types ``offset`` must already point at the value's own data
    (the caller resolves the head offset).
    """

    if isinstance(t, UIntType):
        word = _read_int(data, offset)
        if word >= (1 << t.bits):
            raise DecodingError(f"value exceeds {format_type(t)}")
        return IntValue(word)

    if isinstance(t, IntType):
        word = _read_word(data, offset)
        val = int.from_bytes(word, "big", signed=True)
        if val < -(1 << (t.bits - 1)) or val >= (1 << (t.bits - 1)):
            raise DecodingError(f"value exceeds {format_type(t)}")
        return IntValue(val)

    if isinstance(t, BoolType):
        val = _read_int(data, offset)
        if val not in {0, 1}:
            raise DecodingError("invalid bool abi encoding")
        return BoolValue(bool(val))

    if isinstance(t, AddressType):
        word = _read_word(data, offset)
        return AddressValue("0x" + word[-20:].hex())

    if isinstance(t, HashType):
        return HashValue(_read_word(data, offset))

    if isinstance(t, FixedBytesType):
        return BytesValue(_read_word(data, offset)[: t.size])

    if isinstance(t, (BytesType, StringType)):
        length = _read_int(data, offset)
        start = offset + WORD_SIZE
        end = start + length
        if end > len(data):
            raise DecodingError("dynamic data out of bounds")
        raw = data[start:end]
        if isinstance(t, BytesType):
            return BytesValue(raw)
        try:
            return StringValue(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise DecodingError("string is not valid UTF-8") from exc

    if isinstance(t, ArrayType):
        if t.length is None:
            count = _read_int(data, offset)
            start = offset + WORD_SIZE
        else:
            count = t.length
            start = offset
        element_head = WORD_SIZE if is_dynamic(t.element) else head_size(t.element)
        if count * element_head > len(data) - start:
            raise DecodingError("array length exceeds available data")
        items = _decode_block([t.element] * count, data, start)
        return ArrayValue(tuple(items))

    if isinstance(t, TupleType):
        members = _decode_block([member for _, member in t.components], data, offset)
        return TupleValue(
            tuple((name, member) for (name, _), member in zip(t.components, members))
        )

    raise DecodingError(f"unsupported descriptor: {t!r}")


def _decode_block(types: Sequence[AbiType], data: bytes, base: int) -> List[TypedValue]:
    out: List[TypedValue] = []
    cursor = base
    for t in types:
        if is_dynamic(t):
            relative = _read_int(data, cursor)
            out.append(decode_value(t, data, base + relative))
        else:
            out.append(decode_value(t, data, cursor))
        cursor += head_size(t)
    return out


def decode_values(types: Sequence[AbiType], data: bytes) -> List[TypedValue]:
    """Decode return data laid out as a tuple of ``types``."""

    if len(data) < sum(head_size(t) for t in types):
        raise DecodingError("data shorter than ABI head")
    return _decode_block(types, data, 0)


def named_values(
    names: Sequence[str], values: Sequence[TypedValue]
) -> List[Tuple[str, TypedValue]]:
    """Pair decoded values with output names, numbering unnamed ones."""

    return [
        (name or f"output{index}", value)
        for index, (name, value) in enumerate(zip(names, values))
    ]
