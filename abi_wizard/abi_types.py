"""Type descriptors and typed values for contract ABI arguments.

Both families are small closed sets of frozen dataclasses.  A descriptor says
what shape an argument must have; a value carries the parsed data in the same
shape.  Composite descriptors (arrays and tuples) nest arbitrarily.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Tuple, Union

from eth_utils import to_checksum_address


class AbiError(ValueError):
    """Base class for ABI type, parsing and encoding failures."""


class UnsupportedTypeError(AbiError):
    """Raised for ABI types this tool refuses to handle (fixed point, function)."""


class ParseError(AbiError):
    """Raised when operator text cannot be turned into a typed value."""


class TypeMismatch(ParseError):
    """Raised when the literal's shape does not fit the descriptor."""


class MalformedLiteral(ParseError):
    """Raised when a scalar literal is not valid for its descriptor."""


class ArityMismatch(ParseError):
    """Raised when a composite literal has the wrong number of members."""


class EncodingError(AbiError):
    """Raised when a typed value cannot be encoded against its slot."""


class DecodingError(AbiError):
    """Raised when return data does not decode against the output types."""


# Descriptors ---------------------------------------------------------------


@dataclass(frozen=True)
class UIntType:
    bits: int = 256


@dataclass(frozen=True)
class IntType:
    bits: int = 256


@dataclass(frozen=True)
class BoolType:
    pass


@dataclass(frozen=True)
class StringType:
    pass


@dataclass(frozen=True)
class AddressType:
    pass


@dataclass(frozen=True)
class FixedBytesType:
    size: int


@dataclass(frozen=True)
class BytesType:
    pass


@dataclass(frozen=True)
class HashType:
    pass


@dataclass(frozen=True)
class ArrayType:
    """Array of ``element``; ``length`` is ``None`` for dynamic arrays."""

    element: "AbiType"
    length: int | None = None


@dataclass(frozen=True)
class TupleType:
    """Ordered, named members of a tuple (a Solidity struct)."""

    components: Tuple[Tuple[str, "AbiType"], ...] = ()


AbiType = Union[
    UIntType,
    IntType,
    BoolType,
    StringType,
    AddressType,
    FixedBytesType,
    BytesType,
    HashType,
    ArrayType,
    TupleType,
]


# Values --------------------------------------------------------------------


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class AddressValue:
    """A 20-byte address kept as lower-case ``0x`` hex."""

    value: str

    @property
    def raw(self) -> bytes:
        return bytes.fromhex(self.value[2:])


@dataclass(frozen=True)
class BytesValue:
    """Raw bytes for both ``bytesN`` and dynamic ``bytes`` slots."""

    value: bytes


@dataclass(frozen=True)
class HashValue:
    value: bytes


@dataclass(frozen=True)
class ArrayValue:
    items: Tuple["TypedValue", ...] = ()


@dataclass(frozen=True)
class TupleValue:
    members: Tuple[Tuple[str, "TypedValue"], ...] = ()


TypedValue = Union[
    IntValue,
    BoolValue,
    StringValue,
    AddressValue,
    BytesValue,
    HashValue,
    ArrayValue,
    TupleValue,
]


# Type strings --------------------------------------------------------------

_ARRAY_SUFFIX_RE = re.compile(r"^(.*)\[([0-9]*)\]$")
_UINT_RE = re.compile(r"uint([0-9]{0,3})")
_INT_RE = re.compile(r"int([0-9]{0,3})")
_BYTES_RE = re.compile(r"bytes([0-9]{1,2})")
_FIXED_RE = re.compile(r"u?fixed([0-9]+x[0-9]+)?")


def parse_type(raw_type: str, components: Sequence[Mapping[str, Any]] | None = None) -> AbiType:
    """Build a descriptor from an ABI type string such as ``uint256[2][]``.

    ``components`` carries the member entries for ``tuple`` types exactly as
    they appear in ABI JSON.
    """

    t = str(raw_type).strip()
    if not t:
        raise AbiError("type cannot be empty")

    m_array = _ARRAY_SUFFIX_RE.fullmatch(t)
    if m_array:
        element = parse_type(m_array.group(1), components)
        size = m_array.group(2)
        if not size:
            return ArrayType(element=element)
        length = int(size, 10)
        if length == 0:
            raise AbiError(f"fixed array length must be positive: {raw_type}")
        return ArrayType(element=element, length=length)

    if t == "tuple":
        members = []
        for index, component in enumerate(components or []):
            name = str(component.get("name") or f"field{index}")
            members.append(
                (name, parse_type(component.get("type", ""), component.get("components")))
            )
        return TupleType(components=tuple(members))
    if t == "address":
        return AddressType()
    if t == "bool":
        return BoolType()
    if t == "string":
        return StringType()
    if t == "bytes":
        return BytesType()
    if t == "hash":
        return HashType()
    if t == "function" or _FIXED_RE.fullmatch(t):
        raise UnsupportedTypeError(f"type not supported: {raw_type}")

    m_bytes = _BYTES_RE.fullmatch(t)
    if m_bytes:
        n = int(m_bytes.group(1), 10)
        if n < 1 or n > 32:
            raise AbiError(f"invalid fixed bytes size: {t}")
        return FixedBytesType(size=n)

    m_uint = _UINT_RE.fullmatch(t)
    if m_uint:
        return UIntType(bits=_int_bits(m_uint.group(1), t))

    m_int = _INT_RE.fullmatch(t)
    if m_int:
        return IntType(bits=_int_bits(m_int.group(1), t))

    raise AbiError(f"unknown ABI type: {raw_type}")


def _int_bits(raw: str, type_name: str) -> int:
    bits = int(raw or "256", 10)
    if bits < 8 or bits > 256 or (bits % 8) != 0:
        raise AbiError(f"invalid integer bit size: {type_name}")
    return bits


def format_type(t: AbiType) -> str:
    """Return the canonical type string used in method signatures."""

    if isinstance(t, UIntType):
        return f"uint{t.bits}"
    if isinstance(t, IntType):
        return f"int{t.bits}"
    if isinstance(t, BoolType):
        return "bool"
    if isinstance(t, StringType):
        return "string"
    if isinstance(t, AddressType):
        return "address"
    if isinstance(t, FixedBytesType):
        return f"bytes{t.size}"
    if isinstance(t, BytesType):
        return "bytes"
    if isinstance(t, HashType):
        return "bytes32"
    if isinstance(t, ArrayType):
        suffix = "" if t.length is None else str(t.length)
        return f"{format_type(t.element)}[{suffix}]"
    if isinstance(t, TupleType):
        return "(" + ",".join(format_type(member) for _, member in t.components) + ")"
    raise UnsupportedTypeError(f"unsupported descriptor: {t!r}")


def is_dynamic(t: AbiType) -> bool:
    """True when values of ``t`` live in the tail section of an encoding."""

    if isinstance(t, (StringType, BytesType)):
        return True
    if isinstance(t, ArrayType):
        return t.length is None or is_dynamic(t.element)
    if isinstance(t, TupleType):
        return any(is_dynamic(member) for _, member in t.components)
    return False


def head_size(t: AbiType) -> int:
    """Number of bytes ``t`` occupies in the head section."""

    if is_dynamic(t):
        return 32
    if isinstance(t, ArrayType):
        return int(t.length or 0) * head_size(t.element)
    if isinstance(t, TupleType):
        return sum(head_size(member) for _, member in t.components)
    return 32


def to_python(value: TypedValue) -> Any:
    """Convert a typed value into plain Python data for display."""

    if isinstance(value, (IntValue, BoolValue, StringValue)):
        return value.value
    if isinstance(value, AddressValue):
        return to_checksum_address(value.value)
    if isinstance(value, (BytesValue, HashValue)):
        return "0x" + value.value.hex()
    if isinstance(value, ArrayValue):
        return [to_python(item) for item in value.items]
    if isinstance(value, TupleValue):
        return {name: to_python(member) for name, member in value.members}
    raise AbiError(f"unknown typed value: {value!r}")
