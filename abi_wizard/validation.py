"""Input validators used by prompts and the session flow."""

from __future__ import annotations

import re
from typing import Protocol
from urllib.parse import urlparse

from eth_account import Account

_ADDRESS_RE = re.compile(r"^(0x|0X)?[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_DECIMAL_RE = re.compile(r"^[0-9]+$")


class ValidationError(ValueError):
    """Raised when operator input fails validation."""


def validate_rpc_url(value: str) -> None:
    if not value:
        raise ValidationError("input cannot be empty")
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"invalid rpc url: {value}")


def validate_address(value: str) -> None:
    if not _ADDRESS_RE.fullmatch(value.strip()):
        raise ValidationError("invalid address")


def normalize_address(value: str) -> str:
    """Return ``value`` as lower-case ``0x`` hex after validating it."""

    validate_address(value)
    digits = value.strip()[-40:]
    return "0x" + digits.lower()


def validate_private_key(value: str) -> None:
    if not value:
        raise ValidationError("input cannot be empty")
    if not _PRIVATE_KEY_RE.fullmatch(value.strip()):
        raise ValidationError("invalid private key: expected 64 hex digits")
    try:
        Account.from_key(value.strip())
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"invalid private key: {exc}") from exc


def validate_int(value: str) -> None:
    if not _DECIMAL_RE.fullmatch(value.strip()):
        raise ValidationError("invalid int")


class CodeReader(Protocol):
    def code_at(self, address: str) -> bytes: ...


def validate_contract_address(client: CodeReader, value: str) -> str:
    """Check ``value`` is an address with deployed code; return it normalized."""

    address = normalize_address(value)
    code = client.code_at(address)
    if not code:
        raise ValidationError(
            "given contract address is not a contract address, no bytecode in chain"
        )
    return address
