"""Remembered contract addresses, keyed by interface name."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, List

from .validation import ValidationError, normalize_address, validate_address

logger = logging.getLogger(__name__)


class AddressBookError(RuntimeError):
    """Raised when the address book file is unreadable or invalid."""


@dataclass(frozen=True)
class ContractInfo:
    name: str
    address: str

    def validate(self) -> None:
        if not self.name:
            raise AddressBookError("contract name is empty")
        if not self.address:
            raise AddressBookError(f"contract {self.name} has an empty address")
        try:
            validate_address(self.address)
        except ValidationError as exc:
            raise AddressBookError(f"contract {self.name} address is invalid") from exc


class AddressBook:
    """JSON list of ``{"name": ..., "address": ...}`` entries on disk."""

    def __init__(self, path: str | Path, entries: Iterable[ContractInfo] = ()) -> None:
        self.path = Path(path).expanduser()
        self.entries: List[ContractInfo] = list(entries)

    @classmethod
    def load(cls, path: str | Path) -> "AddressBook":
        target = Path(path).expanduser()
        if not target.exists():
            return cls(target)
        try:
            data = json.loads(target.read_text(encoding="utf-8") or "[]")
        except ValueError as exc:
            raise AddressBookError(f"address book {target} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise AddressBookError(f"address book {target} must contain a JSON array")
        entries = []
        for item in data:
            if not isinstance(item, dict):
                raise AddressBookError(f"address book {target} entries must be objects")
            info = ContractInfo(name=str(item.get("name", "")), address=str(item.get("address", "")))
            info.validate()
            entries.append(info)
        return cls(target, entries)

    def addresses_for(self, name: str) -> List[str]:
        return [entry.address for entry in self.entries if entry.name == name]

    def remember(self, name: str, address: str) -> None:
        """Append ``(name, address)`` unless already present, then save.

        Addresses are compared case-insensitively, so a checksummed entry and
        its lower-case form count as the same contract.
        """

        info = ContractInfo(name=name, address=address)
        info.validate()
        wanted = normalize_address(address)
        if any(
            entry.name == name and normalize_address(entry.address) == wanted
            for entry in self.entries
        ):
            return
        self.entries.append(info)
        self.save()

    def save(self) -> None:
        for entry in self.entries:
            entry.validate()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([asdict(entry) for entry in self.entries], indent=2)
        try:
            self.path.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            raise AddressBookError(f"failed to write address book {self.path}: {exc}") from exc
        logger.debug("Saved %d address book entries to %s", len(self.entries), self.path)
