"""Contract interfaces parsed from ABI JSON."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

from eth_utils import keccak

from .abi_types import AbiError, AbiType, TypedValue, format_type, parse_type
from .codec import encode_call

logger = logging.getLogger(__name__)


class InterfaceLoadError(RuntimeError):
    """Raised when an ABI source cannot be turned into method descriptors."""


class MethodKind(str, Enum):
    READ = "Read"
    WRITE = "Write"


@dataclass(frozen=True)
class MethodDescriptor:
    """One callable contract function."""

    name: str
    abi_name: str
    selector: bytes
    inputs: Tuple[Tuple[str, AbiType], ...]
    outputs: Tuple[Tuple[str, AbiType], ...]
    constant: bool
    payable: bool

    @property
    def signature(self) -> str:
        return f"{self.abi_name}({','.join(format_type(t) for _, t in self.inputs)})"

    @property
    def input_types(self) -> List[AbiType]:
        return [t for _, t in self.inputs]

    @property
    def output_types(self) -> List[AbiType]:
        return [t for _, t in self.outputs]

    def encode(self, values: Sequence[TypedValue]) -> bytes:
        """Call data for this method: selector followed by the encoded arguments."""

        return encode_call(self.selector, self.input_types, values)


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 over the canonical signature."""

    return keccak(text=signature)[:4]


def classify(method: MethodDescriptor) -> MethodKind:
    return MethodKind.READ if method.constant else MethodKind.WRITE


def _parse_params(entries: Any, *, method_name: str, section: str) -> Tuple[Tuple[str, AbiType], ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise InterfaceLoadError(f"{method_name}: {section} must be a list")
    params: List[Tuple[str, AbiType]] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or "type" not in entry:
            raise InterfaceLoadError(f"{method_name}: {section}[{index}] has no type")
        try:
            abi_type = parse_type(entry["type"], entry.get("components"))
        except AbiError as exc:
            raise InterfaceLoadError(f"{method_name}: {exc}") from exc
        params.append((str(entry.get("name") or ""), abi_type))
    return tuple(params)


def parse_interface(raw: bytes | str) -> Dict[str, MethodDescriptor]:
    """Parse ABI JSON text into method descriptors keyed by unique name.

    Overloaded functions keep the first name and get numeric suffixes for the
    following ones (``foo``, ``foo0``, ``foo1``).
    """

    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InterfaceLoadError(f"ABI is not valid JSON: {exc}") from exc
    if isinstance(data, dict) and isinstance(data.get("abi"), list):
        data = data["abi"]
    if not isinstance(data, list):
        raise InterfaceLoadError("ABI must be a JSON array of entries")

    methods: Dict[str, MethodDescriptor] = {}
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise InterfaceLoadError(f"ABI entry {index} must be an object")
        if entry.get("type", "function") != "function":
            continue
        abi_name = entry.get("name")
        if not isinstance(abi_name, str) or not abi_name:
            raise InterfaceLoadError(f"ABI function entry {index} has no name")

        inputs = _parse_params(entry.get("inputs"), method_name=abi_name, section="inputs")
        outputs = _parse_params(entry.get("outputs"), method_name=abi_name, section="outputs")
        mutability = entry.get("stateMutability")
        constant = mutability in {"view", "pure"} or bool(entry.get("constant", False))
        payable = mutability == "payable" or bool(entry.get("payable", False))

        name = abi_name
        suffix = 0
        while name in methods:
            name = f"{abi_name}{suffix}"
            suffix += 1

        signature = f"{abi_name}({','.join(format_type(t) for _, t in inputs)})"
        methods[name] = MethodDescriptor(
            name=name,
            abi_name=abi_name,
            selector=function_selector(signature),
            inputs=inputs,
            outputs=outputs,
            constant=constant,
            payable=payable,
        )
    return methods


class InterfaceSource(Protocol):
    def list_available(self) -> List[str]: ...

    def load(self, name: str) -> bytes: ...


class InterfaceRegistry:
    """Immutable collection of parsed contract interfaces keyed by name."""

    def __init__(self, interfaces: Mapping[str, Mapping[str, MethodDescriptor]]) -> None:
        self._interfaces = MappingProxyType(
            {name: MappingProxyType(dict(methods)) for name, methods in interfaces.items()}
        )

    @classmethod
    def from_source(cls, source: InterfaceSource) -> "InterfaceRegistry":
        """Load every interface the source offers; any bad file fails the load."""

        interfaces: Dict[str, Dict[str, MethodDescriptor]] = {}
        for name in source.list_available():
            try:
                interfaces[name] = parse_interface(source.load(name))
            except InterfaceLoadError as exc:
                raise InterfaceLoadError(f"failed to load ABI {name}: {exc}") from exc
            logger.debug("Loaded ABI %s with %d methods", name, len(interfaces[name]))
        return cls(interfaces)

    def names(self) -> List[str]:
        return sorted(self._interfaces)

    def __contains__(self, name: object) -> bool:
        return name in self._interfaces

    def __len__(self) -> int:
        return len(self._interfaces)

    def load(self, name: str) -> List[MethodDescriptor]:
        """Return the method descriptors of interface ``name``."""

        try:
            return list(self._interfaces[name].values())
        except KeyError as exc:
            raise KeyError(f"unknown interface: {name}") from exc

    def method(self, name: str, method_name: str) -> MethodDescriptor:
        methods = self._interfaces.get(name)
        if methods is None:
            raise KeyError(f"unknown interface: {name}")
        try:
            return methods[method_name]
        except KeyError as exc:
            raise KeyError(f"interface {name} has no method {method_name}") from exc

    def methods_by_kind(self, name: str, kind: MethodKind) -> List[MethodDescriptor]:
        return [method for method in self.load(name) if classify(method) is kind]


def describe_methods(methods: Iterable[MethodDescriptor]) -> Sequence[str]:
    """Render one summary line per method for listings."""

    lines = []
    for method in sorted(methods, key=lambda m: m.name):
        flags = classify(method).value
        if method.payable:
            flags += ", payable"
        lines.append(f"0x{method.selector.hex()}  {method.name:<24} {method.signature} [{flags}]")
    return lines
