"""Interactive flow: pick a contract, a method and arguments, then execute.

The session is an explicit state machine.  Each state has one handler that
returns the next state; :data:`TRANSITIONS` lists every allowed move and the
controller refuses anything else.  The run only ends when the operator picks
``exit`` or a fatal error (failed read call, failed submission) propagates.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Protocol, Sequence

from .abi_types import DecodingError, EncodingError, ParseError, TypedValue, format_type, to_python
from .address_book import AddressBook, AddressBookError
from .codec import decode_values, encode_value, named_values
from .config import ConfigurationError, Settings, write_settings
from .parser import parse_value
from .registry import InterfaceLoadError, InterfaceRegistry, MethodDescriptor, MethodKind
from .rpc_client import ChainConnectionError, RPCError, RPCTransportError
from .session import ChainConnection, SessionContext
from .signer import UnsignedTransaction
from .validation import (
    ValidationError,
    validate_address,
    validate_contract_address,
    validate_int,
    validate_private_key,
    validate_rpc_url,
)

logger = logging.getLogger(__name__)

# Only the most recent states are kept in FlowController.history.
HISTORY_LIMIT = 64


class ChainCallError(RuntimeError):
    """Raised when a read-only call fails or its output cannot be decoded."""


class SubmissionError(RuntimeError):
    """Raised when a write transaction cannot be signed or submitted."""


class ReceiptUnavailable(RuntimeError):
    """Raised when no receipt exists yet for a submitted transaction."""


class Step(str, Enum):
    SELECT_INTERFACE = "select_interface"
    ACQUIRE_CONNECTION = "acquire_connection"
    ACQUIRE_ADDRESS = "acquire_address"
    SELECT_METHOD = "select_method"
    COLLECT_ARGUMENTS = "collect_arguments"
    EXECUTE = "execute"
    CHOOSE_NEXT = "choose_next"
    EXIT = "exit"


class NextStep(str, Enum):
    """Choices offered once a method has been executed."""

    CHANGE_CONTRACT = "change_contract"
    CHANGE_CONTRACT_ADDRESS = "change_contract_address"
    SELECT_METHOD = "select_method"
    EXIT = "exit"


TRANSITIONS: Dict[Step, FrozenSet[Step]] = {
    Step.SELECT_INTERFACE: frozenset({Step.ACQUIRE_CONNECTION}),
    Step.ACQUIRE_CONNECTION: frozenset({Step.ACQUIRE_CONNECTION, Step.ACQUIRE_ADDRESS}),
    Step.ACQUIRE_ADDRESS: frozenset({Step.ACQUIRE_ADDRESS, Step.SELECT_METHOD}),
    # An interface without functions has nothing to execute.
    Step.SELECT_METHOD: frozenset({Step.COLLECT_ARGUMENTS, Step.CHOOSE_NEXT}),
    Step.COLLECT_ARGUMENTS: frozenset({Step.EXECUTE}),
    # Losing the node while preparing a transaction sends the operator back
    # to pick an endpoint.
    Step.EXECUTE: frozenset({Step.CHOOSE_NEXT, Step.ACQUIRE_CONNECTION}),
    Step.CHOOSE_NEXT: frozenset(
        {Step.SELECT_METHOD, Step.ACQUIRE_ADDRESS, Step.SELECT_INTERFACE, Step.EXIT}
    ),
}

NEXT_STEP_TARGETS: Dict[NextStep, Step] = {
    NextStep.CHANGE_CONTRACT: Step.SELECT_INTERFACE,
    NextStep.CHANGE_CONTRACT_ADDRESS: Step.ACQUIRE_ADDRESS,
    NextStep.SELECT_METHOD: Step.SELECT_METHOD,
    NextStep.EXIT: Step.EXIT,
}


class PromptSurface(Protocol):
    def text(
        self,
        label: str,
        *,
        default: str | None = None,
        validate: Callable[[str], None] | None = None,
        mask: bool = False,
    ) -> str: ...

    def select(self, label: str, items: Sequence[str]) -> str: ...

    def confirm(self, label: str, default: bool = True) -> bool: ...

    def show(self, message: str) -> None: ...


class Connector(Protocol):
    def connect(self, endpoint: str) -> ChainConnection: ...


class TransactionSigner(Protocol):
    def sign(self, tx: UnsignedTransaction, chain_id: int, private_key: str) -> Any: ...


class FlowController:
    """Drives one interactive session over a shared interface registry."""

    def __init__(
        self,
        registry: InterfaceRegistry,
        prompts: PromptSurface,
        connector: Connector,
        signer: TransactionSigner,
        *,
        session: SessionContext | None = None,
        settings: Settings | None = None,
        config_path: str | Path | None = None,
        address_book: AddressBook | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self.prompts = prompts
        self.connector = connector
        self.signer = signer
        self.session = session if session is not None else SessionContext()
        self.settings = settings if settings is not None else Settings()
        self.config_path = config_path
        self.address_book = address_book
        self._sleep = sleep

        self.interface: str | None = None
        self.mode: MethodKind | None = None
        self.method: MethodDescriptor | None = None
        self.arguments: List[TypedValue] = []
        self.payload: bytes = b""
        self.address_from_book = False
        self.history: List[Step] = []

        self._handlers: Dict[Step, Callable[[], Step]] = {
            Step.SELECT_INTERFACE: self.select_interface,
            Step.ACQUIRE_CONNECTION: self.acquire_connection,
            Step.ACQUIRE_ADDRESS: self.acquire_address,
            Step.SELECT_METHOD: self.select_method,
            Step.COLLECT_ARGUMENTS: self.collect_arguments,
            Step.EXECUTE: self.execute,
            Step.CHOOSE_NEXT: self.choose_next,
        }

    def run(self, start: Step = Step.SELECT_INTERFACE) -> None:
        """Run until the operator exits; fatal errors propagate."""

        if not len(self.registry):
            raise InterfaceLoadError("no contract ABIs available; add ABI files first")
        state = start
        while state is not Step.EXIT:
            self.history.append(state)
            del self.history[:-HISTORY_LIMIT]
            next_state = self._handlers[state]()
            if next_state not in TRANSITIONS[state]:
                raise RuntimeError(f"illegal transition {state.value} -> {next_state.value}")
            logger.debug("Flow %s -> %s", state.value, next_state.value)
            state = next_state
        self.history.append(Step.EXIT)
        del self.history[:-HISTORY_LIMIT]

    # States ---------------------------------------------------------------

    def select_interface(self) -> Step:
        names = self.registry.names()
        self.interface = self.prompts.select(
            f"Select the contract to interact (total: {len(names)})", names
        )
        self.session.clear_contract_address()
        self.method = None
        return Step.ACQUIRE_CONNECTION

    def acquire_connection(self) -> Step:
        if self.session.connection is not None:
            return Step.ACQUIRE_ADDRESS
        rpc_url = self.prompts.text(
            "Enter the RPC URL",
            default=self.session.rpc_url or self.settings.rpc_url,
            validate=validate_rpc_url,
        )
        try:
            connection = self.connector.connect(rpc_url)
        except ChainConnectionError as exc:
            logger.error("failed to connect to given rpc url: %s, please input valid one", exc)
            return Step.ACQUIRE_CONNECTION
        self.session.set_connection(connection, rpc_url)
        self._persist(rpc_url=rpc_url)
        return Step.ACQUIRE_ADDRESS

    def acquire_address(self) -> Step:
        assert self.interface is not None and self.session.connection is not None
        if self.session.contract_address is not None:
            return Step.SELECT_METHOD
        address: str | None = None
        from_book = False
        if self.address_book is not None:
            for remembered in self.address_book.addresses_for(self.interface):
                if self.prompts.confirm(f"Use {remembered} as contract address?"):
                    address = remembered
                    from_book = True
                    break
        if address is None:
            address = self.prompts.text("Enter the contract address", validate=validate_address)

        try:
            normalized = validate_contract_address(self.session.connection, address)
        except ValidationError as exc:
            logger.error("Invalid contract address (reason: %s)", exc)
            return Step.ACQUIRE_ADDRESS
        except (RPCError, RPCTransportError) as exc:
            logger.error("Invalid contract address (reason: failed to get contract code: %s)", exc)
            return Step.ACQUIRE_ADDRESS
        self.session.set_contract_address(normalized)
        self.address_from_book = from_book
        return Step.SELECT_METHOD

    def select_method(self) -> Step:
        assert self.interface is not None
        if not self.registry.load(self.interface):
            self.prompts.show(f"{self.interface} has no functions to call")
            return Step.CHOOSE_NEXT

        while True:
            mode = MethodKind(
                self.prompts.select(
                    "Read or Write contract", [MethodKind.READ.value, MethodKind.WRITE.value]
                )
            )
            methods = self.registry.methods_by_kind(self.interface, mode)
            if methods:
                break
            self.prompts.show(f"{self.interface} has no {mode.value} methods")

        if mode is MethodKind.WRITE:
            self._ensure_signing_material()

        names = sorted(method.name for method in methods)
        chosen = self.prompts.select(f"Select Method (total: {len(names)})", names)
        self.mode = mode
        self.method = self.registry.method(self.interface, chosen)
        return Step.COLLECT_ARGUMENTS

    def collect_arguments(self) -> Step:
        assert self.method is not None
        values: List[TypedValue] = []
        for index, (name, abi_type) in enumerate(self.method.inputs):
            label = name or f"arg{index}"
            while True:
                raw = self.prompts.text(
                    f"Enter value for {label} (type: {format_type(abi_type)})", default=""
                )
                try:
                    value = parse_value(raw, abi_type)
                    encode_value(abi_type, value)
                except (ParseError, EncodingError) as exc:
                    logger.error("Invalid value for %s (reason: %s)", label, exc)
                    continue
                values.append(value)
                break
        self.arguments = values
        self.payload = self.method.encode(values)
        return Step.EXECUTE

    def execute(self) -> Step:
        assert self.method is not None
        if self.mode is MethodKind.READ:
            self._execute_read()
        else:
            retry = self._execute_write()
            if retry is not None:
                return retry
        self._remember_address()
        return Step.CHOOSE_NEXT

    def choose_next(self) -> Step:
        choice = NextStep(
            self.prompts.select("Select the next step", [step.value for step in NextStep])
        )
        if choice is NextStep.CHANGE_CONTRACT:
            self.interface = None
            self.session.clear_contract_address()
        elif choice is NextStep.CHANGE_CONTRACT_ADDRESS:
            self.session.clear_contract_address()
        return NEXT_STEP_TARGETS[choice]

    # Helpers --------------------------------------------------------------

    def _ensure_signing_material(self) -> None:
        if self.session.private_key is None:
            private_key = self.prompts.text(
                "Enter your private key to execute contract (e.g. 1234..., no 0x prefix)",
                validate=validate_private_key,
                mask=True,
            )
            # The key stays in memory only; it is never written to the config file.
            self.session.set_private_key(private_key)
        if not self.session.chain_id:
            raw = self.prompts.text(
                "Enter the chain ID to execute contract method (e.g. 1 for mainnet, 11155111 for sepolia)",
                validate=_validate_chain_id,
            )
            self.session.set_chain_id(int(raw))
            self._persist(chain_id=self.session.chain_id)

    def _execute_read(self) -> None:
        assert self.method is not None and self.session.connection is not None
        address = self.session.contract_address
        try:
            output = self.session.connection.call(address, self.payload)
        except (RPCError, RPCTransportError) as exc:
            logger.error("failed to call contract (reason: %s)", exc)
            raise ChainCallError(f"failed to call contract: {exc}") from exc
        try:
            decoded = decode_values(self.method.output_types, output)
        except DecodingError as exc:
            logger.error("failed to unpack output (reason: %s)", exc)
            raise ChainCallError(f"failed to unpack output: {exc}") from exc
        names = [name for name, _ in self.method.outputs]
        rendered = {name: to_python(value) for name, value in named_values(names, decoded)}
        self.prompts.show(f"output: {json.dumps(rendered, default=str)}")

    def _execute_write(self) -> Step | None:
        assert self.method is not None and self.session.connection is not None
        connection = self.session.connection
        value = 0
        if self.method.payable:
            value = int(
                self.prompts.text(
                    "Enter the value to be sent with the contract call (in wei)",
                    validate=validate_int,
                )
            )

        sender = self.session.sender
        try:
            nonce = connection.nonce(sender)
        except (RPCError, RPCTransportError) as exc:
            logger.error("failed to get nonce (reason: %s), maybe rpc is not working.", exc)
            self.session.clear_connection()
            return Step.ACQUIRE_CONNECTION
        try:
            gas_price = connection.suggested_gas_price()
        except (RPCError, RPCTransportError) as exc:
            logger.error("failed to get gas price (reason: %s), maybe rpc is not working.", exc)
            self.session.clear_connection()
            return Step.ACQUIRE_CONNECTION

        unsigned = UnsignedTransaction(
            to=self.session.contract_address,
            nonce=nonce,
            gas_price=gas_price,
            data=self.payload,
            value=value,
        )
        try:
            signed = self.signer.sign(unsigned, self.session.chain_id, self.session.private_key)
        except (ValueError, TypeError) as exc:
            logger.error("failed to sign transaction (reason: %s)", exc)
            raise SubmissionError(f"failed to sign transaction: {exc}") from exc
        try:
            tx_hash = connection.send(signed.raw)
        except (RPCError, RPCTransportError) as exc:
            logger.error("failed to send transaction (reason: %s), maybe rpc is not working.", exc)
            raise SubmissionError(f"failed to send transaction: {exc}") from exc
        self.prompts.show(f"transaction sent (txHash {tx_hash}).")

        wait_seconds = self.settings.wait_seconds
        logger.info("waiting for transaction to be mined... (sleep %ss)", wait_seconds)
        self._sleep(wait_seconds)
        try:
            receipt = self._fetch_receipt(tx_hash)
        except ReceiptUnavailable as exc:
            self.prompts.show(f"transaction receipt unavailable ({exc})")
        else:
            self.prompts.show(f"transaction receipt: {json.dumps(receipt, default=str)}")
        return None

    def _fetch_receipt(self, tx_hash: str) -> Any:
        assert self.session.connection is not None
        try:
            receipt = self.session.connection.receipt(tx_hash)
        except (RPCError, RPCTransportError) as exc:
            logger.error("failed to get transaction receipt (reason: %s)", exc)
            raise ReceiptUnavailable(str(exc)) from exc
        if receipt is None:
            raise ReceiptUnavailable("not yet mined")
        return receipt

    def _remember_address(self) -> None:
        if self.address_book is None or self.address_from_book:
            return
        assert self.interface is not None and self.session.contract_address is not None
        try:
            self.address_book.remember(self.interface, self.session.contract_address)
        except AddressBookError as exc:
            logger.error("failed to write contract infos (reason: %s)", exc)
        else:
            self.address_from_book = True

    def _persist(self, **changes: Any) -> None:
        self.settings = replace(self.settings, **changes)
        if self.config_path is None:
            return
        try:
            write_settings(self.config_path, self.settings)
        except ConfigurationError as exc:
            logger.error("failed to write config file (reason: %s)", exc)


def _validate_chain_id(value: str) -> None:
    validate_int(value)
    if int(value) <= 0:
        raise ValidationError("chain id must be positive")


def run_session(
    registry: InterfaceRegistry,
    prompts: PromptSurface,
    connector: Connector,
    signer: TransactionSigner,
    **options: Any,
) -> None:
    """Run one interactive session; returns when the operator exits."""

    FlowController(registry, prompts, connector, signer, **options).run()
