"""Interactive console front-end for the ABI wizard."""

from __future__ import annotations

from getpass import getpass
from pathlib import Path
from typing import Callable, List, Sequence

from .abi_store import AbiDirectory, seed_bundled_abis
from .address_book import AddressBook
from .chains import ChainInfo, chain_info_by_id, load_chain_infos
from .config import (
    DEFAULT_ABI_DIR,
    DEFAULT_ADDRESS_BOOK_PATH,
    DEFAULT_CONFIG_PATH,
    Settings,
    config_exists,
    load_settings,
)
from .flow import run_session
from .registry import InterfaceRegistry
from .rpc_client import RPCConnector
from .session import SessionContext, session_from_settings
from .signer import Signer
from .validation import ValidationError

# Lists longer than this ask for a filter before numbering the choices.
SEARCHABLE_LIST_THRESHOLD = 4
BANNER_WIDTH = 60

WELCOME = """
==============================
 abi-wizard contract console
==============================
Pick a contract ABI, point it at a deployed address and call its methods.
Press Ctrl+C at any time to quit.
"""


class ConsolePrompts:
    """Prompt surface backed by ``input()`` and ``getpass``."""

    def text(
        self,
        label: str,
        *,
        default: str | None = None,
        validate: Callable[[str], None] | None = None,
        mask: bool = False,
    ) -> str:
        suffix = f" [{default}]" if default else ""
        while True:
            prompt = f"{label}{suffix}: "
            raw = (getpass(prompt) if mask else input(prompt)).strip()
            if not raw:
                if default is None:
                    print("Please enter a value.")
                    continue
                raw = default
            if validate is not None:
                try:
                    validate(raw)
                except ValidationError as exc:
                    print(f"Invalid input: {exc}")
                    continue
            return raw

    def select(self, label: str, items: Sequence[str]) -> str:
        if not items:
            raise ValueError(f"nothing to select for: {label}")
        while True:
            candidates = list(items)
            if len(candidates) > SEARCHABLE_LIST_THRESHOLD:
                query = input(f"{label} - filter (blank for all): ").strip().lower()
                candidates = [item for item in items if query in item.lower()]
                if not candidates:
                    print("No matches, please try again.\n")
                    continue
            print(f"\n{label}")
            for index, item in enumerate(candidates, start=1):
                print(f"  {index}) {item}")
            raw = input("Select an option: ").strip()
            if raw.isdigit() and 1 <= int(raw) <= len(candidates):
                return candidates[int(raw) - 1]
            if raw in candidates:
                return raw
            print("Invalid selection, please try again.\n")

    def confirm(self, label: str, default: bool = True) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        raw = input(f"{label} {hint}: ").strip().lower()
        if not raw:
            return default
        return raw not in {"n", "no"}

    def show(self, message: str) -> None:
        print(message)


def format_context(session: SessionContext, chain_infos: Sequence[ChainInfo]) -> List[str]:
    """Lines of the context box shown after a config file is applied."""

    lines = [
        f"RPC URL: {session.rpc_url or 'not connected'}",
        f"Chain ID: {session.chain_id or 'unknown'}",
    ]
    info = chain_info_by_id(chain_infos, session.chain_id) if session.chain_id else None
    if info is not None:
        currency = info.native_currency
        lines.append(f"Chain: {info.name} ({info.short_name})")
        lines.append(f"Currency: {currency.name} ({currency.symbol}, {currency.decimals} decimals)")
    border = "+" + "-" * (BANNER_WIDTH - 2) + "+"
    body = [f"| {line:<{BANNER_WIDTH - 4}} |" for line in lines]
    return [border, *body, border]


def print_context(session: SessionContext, chain_infos: Sequence[ChainInfo]) -> None:
    for line in format_context(session, chain_infos):
        print(line)


def console_main(
    *,
    config_path: str | Path | None = None,
    abi_dir: str | Path | None = None,
    address_book_path: str | Path | None = None,
) -> None:
    """Launch the interactive contract console."""

    print(WELCOME)
    abi_path = Path(abi_dir).expanduser() if abi_dir is not None else DEFAULT_ABI_DIR
    seed_bundled_abis(abi_path)
    registry = InterfaceRegistry.from_source(AbiDirectory(abi_path))
    address_book = AddressBook.load(address_book_path or DEFAULT_ADDRESS_BOOK_PATH)

    prompts = ConsolePrompts()
    connector = RPCConnector()
    config_target = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    session: SessionContext | None = None
    if config_exists(config_target):
        settings = load_settings(config_path=config_target)
        if prompts.confirm(f"Config file found at {config_target}. Apply it?"):
            session = session_from_settings(settings, connector.connect)
            print_context(session, load_chain_infos())
    else:
        settings = load_settings() if config_path is None else Settings()

    run_session(
        registry,
        prompts,
        connector,
        Signer(),
        session=session,
        settings=settings,
        config_path=config_target,
        address_book=address_book,
    )
    print("Goodbye!")
