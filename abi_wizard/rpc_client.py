"""Ethereum JSON-RPC client used as the session's chain connection.

The client exposes only the calls an interactive contract session needs
and leaves ABI work and signing to the rest of the package.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Optional

import requests
from requests import RequestException

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20
DEFAULT_TIMEOUT_SECONDS = 30


class RPCError(RuntimeError):
    """Raised when the node responds with a JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class RPCTransportError(RuntimeError):
    """Raised when the RPC endpoint is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChainConnectionError(RuntimeError):
    """Raised when a connection to an endpoint cannot be established."""


def _hex_to_int(raw: Any, *, field: str) -> int:
    if not isinstance(raw, str) or not raw.startswith("0x"):
        raise RPCTransportError(f"{field} must be a 0x-prefixed hex quantity, got {raw!r}")
    try:
        return int(raw, 16)
    except ValueError as exc:
        raise RPCTransportError(f"{field} is not a hex quantity: {raw!r}") from exc


def _hex_to_bytes(raw: Any, *, field: str) -> bytes:
    if not isinstance(raw, str) or not raw.startswith("0x"):
        raise RPCTransportError(f"{field} must be 0x-prefixed hex data, got {raw!r}")
    try:
        return bytes.fromhex(raw[2:])
    except ValueError as exc:
        raise RPCTransportError(f"{field} is not hex data: {raw!r}") from exc


class EthereumRPCClient:
    """Typed JSON-RPC client for an Ethereum compatible node."""

    def __init__(self, endpoint: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = requests.Session()

    def request(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """Perform a JSON-RPC request and return its ``result``."""

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self.endpoint,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                timeout=self.timeout,
            )
        except RequestException as exc:
            logger.debug("RPC connection failed: %s", exc, exc_info=True)
            raise RPCTransportError(f"RPC connection to {self.endpoint} failed: {exc}") from exc
        if not response.ok:
            logger.debug("RPC HTTP error %s body=%s", response.status_code, response.text)
            raise RPCTransportError(
                f"RPC server returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            result = response.json()
        except ValueError as exc:
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("RPC server returned malformed JSON") from exc
        if not isinstance(result, dict):
            raise RPCTransportError("RPC server returned a non-object response")
        if result.get("error"):
            error = result["error"]
            raise RPCError(
                error.get("code", -1), error.get("message", "unknown"), error.get("data")
            )
        return result.get("result")

    # Chain client operations ---------------------------------------------

    def chain_id(self) -> int:
        return _hex_to_int(self.request("eth_chainId"), field="chain id")

    def call(self, address: str, payload: bytes, *, sender: str = ZERO_ADDRESS) -> bytes:
        """Execute a read-only call against ``address`` at the latest block."""

        call_object = {"from": sender, "to": address, "data": "0x" + payload.hex()}
        return _hex_to_bytes(self.request("eth_call", [call_object, "latest"]), field="call result")

    def code_at(self, address: str) -> bytes:
        return _hex_to_bytes(self.request("eth_getCode", [address, "latest"]), field="code")

    def nonce(self, address: str) -> int:
        return _hex_to_int(
            self.request("eth_getTransactionCount", [address, "pending"]), field="nonce"
        )

    def suggested_gas_price(self) -> int:
        return _hex_to_int(self.request("eth_gasPrice"), field="gas price")

    def send(self, raw_transaction: bytes) -> str:
        """Submit a signed transaction and return its hash."""

        return str(self.request("eth_sendRawTransaction", ["0x" + raw_transaction.hex()]))

    def receipt(self, tx_hash: str) -> Dict[str, Any] | None:
        """Return the receipt for ``tx_hash`` or ``None`` while it is pending."""

        return self.request("eth_getTransactionReceipt", [tx_hash])


class RPCConnector:
    """Opens :class:`EthereumRPCClient` connections for the session flow."""

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def connect(self, endpoint: str) -> EthereumRPCClient:
        """Create a client and probe it; raise :class:`ChainConnectionError` on failure."""

        client = EthereumRPCClient(endpoint, timeout=self.timeout)
        try:
            client.chain_id()
        except (RPCError, RPCTransportError) as exc:
            raise ChainConnectionError(f"failed to connect to {endpoint}: {exc}") from exc
        logger.debug("Connected to %s", endpoint)
        return client
