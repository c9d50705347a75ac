"""Per-run session state for the interactive flow.

A :class:`SessionContext` is owned by one flow controller.  The connection,
signing key and chain id are acquired once and kept for the whole run; the
contract address is cleared whenever the operator changes contract or
address.  Re-acquiring any of the persistent fields requires an explicit
``clear_*`` call first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from .rpc_client import ChainConnectionError, RPCError, RPCTransportError
from .signer import address_of
from .validation import ValidationError, validate_private_key, validate_rpc_url

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """Raised when a persistent session field would be overwritten."""


class ChainConnection(Protocol):
    def chain_id(self) -> int: ...

    def call(self, address: str, payload: bytes) -> bytes: ...

    def code_at(self, address: str) -> bytes: ...

    def nonce(self, address: str) -> int: ...

    def suggested_gas_price(self) -> int: ...

    def send(self, raw_transaction: bytes) -> str: ...

    def receipt(self, tx_hash: str) -> Any: ...


@dataclass
class SessionContext:
    """Connection, key, chain id and target address for one run."""

    connection: ChainConnection | None = None
    rpc_url: str = ""
    private_key: str | None = None
    chain_id: int = 0
    contract_address: str | None = None

    @property
    def sender(self) -> str | None:
        if self.private_key is None:
            return None
        return address_of(self.private_key)

    def set_connection(self, connection: ChainConnection, rpc_url: str = "") -> None:
        """Store a freshly opened connection.

        When a chain id is already known the node is asked for its own and a
        mismatch is reported as a warning.
        """

        if self.connection is not None:
            raise SessionStateError("connection already acquired; clear it first")
        self.connection = connection
        self.rpc_url = rpc_url
        if self.chain_id:
            try:
                remote_chain_id = connection.chain_id()
            except (RPCError, RPCTransportError) as exc:
                logger.debug("Could not query chain id from %s: %s", rpc_url, exc)
                return
            if remote_chain_id != self.chain_id:
                logger.warning(
                    "chain id from config (%d) and chain id from the client (%d) are different",
                    self.chain_id,
                    remote_chain_id,
                )

    def clear_connection(self) -> None:
        self.connection = None
        self.rpc_url = ""

    def set_private_key(self, private_key: str) -> None:
        if self.private_key is not None:
            raise SessionStateError("signing key already acquired; clear it first")
        validate_private_key(private_key)
        self.private_key = private_key.strip()

    def clear_private_key(self) -> None:
        self.private_key = None

    def set_chain_id(self, chain_id: int) -> None:
        if self.chain_id:
            raise SessionStateError("chain id already acquired; clear it first")
        if chain_id <= 0:
            raise ValidationError("chain id must be positive")
        self.chain_id = chain_id

    def clear_chain_id(self) -> None:
        self.chain_id = 0

    def set_contract_address(self, address: str) -> None:
        self.contract_address = address

    def clear_contract_address(self) -> None:
        self.contract_address = None


def session_from_settings(
    settings: Any, connect: Callable[[str], ChainConnection]
) -> SessionContext:
    """Build a session from saved settings, skipping any value that does not work.

    Every failure is reported and leaves the field unset so the flow prompts
    for it later.
    """

    session = SessionContext(chain_id=max(int(settings.chain_id or 0), 0))
    hint = "failed to apply config file, please input manually when you see the prompt"

    if settings.private_key:
        try:
            session.set_private_key(settings.private_key)
        except ValidationError as exc:
            logger.warning("%s (reason: %s)", hint, exc)

    try:
        validate_rpc_url(settings.rpc_url)
    except ValidationError as exc:
        logger.warning("%s (reason: %s)", hint, exc)
        return session
    try:
        connection = connect(settings.rpc_url)
    except ChainConnectionError as exc:
        logger.warning("%s (reason: %s)", hint, exc)
        session.rpc_url = settings.rpc_url
        return session
    session.set_connection(connection, settings.rpc_url)
    return session
