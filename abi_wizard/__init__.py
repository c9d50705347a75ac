"""Interactive contract ABI wizard package."""

from .abi_types import (
    AbiError,
    ArityMismatch,
    DecodingError,
    EncodingError,
    MalformedLiteral,
    ParseError,
    TypeMismatch,
    UnsupportedTypeError,
    format_type,
    parse_type,
    to_python,
)
from .codec import decode_values, encode_call, encode_values
from .flow import FlowController, Step, run_session
from .parser import parse_value
from .registry import InterfaceLoadError, InterfaceRegistry, MethodDescriptor, MethodKind
from .session import SessionContext

__all__ = [
    "AbiError",
    "ArityMismatch",
    "DecodingError",
    "EncodingError",
    "FlowController",
    "InterfaceLoadError",
    "InterfaceRegistry",
    "MalformedLiteral",
    "MethodDescriptor",
    "MethodKind",
    "ParseError",
    "SessionContext",
    "Step",
    "TypeMismatch",
    "UnsupportedTypeError",
    "decode_values",
    "encode_call",
    "encode_values",
    "format_type",
    "parse_type",
    "parse_value",
    "run_session",
    "to_python",
]
