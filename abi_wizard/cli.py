"""Command line interface for the ABI wizard.

``console`` runs the interactive session; the remaining commands expose the
ABI directory, method listings and call-data encoding without prompting.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Sequence

from .abi_store import AbiDirectory, seed_bundled_abis
from .abi_types import AbiError
from .config import DEFAULT_ABI_DIR, ConfigurationError
from .parser import parse_value
from .registry import InterfaceLoadError, InterfaceRegistry, describe_methods
from .validation import ValidationError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


class TerminationRequested(Exception):
    """Raised from the SIGTERM handler to unwind the interactive session."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _should_debug() -> bool:
    return bool(int(os.environ.get("ABI_WIZARD_DEBUG", "0") or "0"))


def _on_sigterm(signum: int, frame: Any) -> None:
    raise TerminationRequested(signal.Signals(signum).name)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive contract ABI wizard")
    parser.add_argument("--config", help="Path to config.yaml (default ~/.abi-wizard/config.yaml)")
    parser.add_argument("--abi-dir", help="Directory of *.abi / *.json files (default ~/.abi-wizard/abis)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("console", help="Launch the interactive contract console")
    subparsers.add_parser("list-abis", help="List contract ABIs available in the ABI directory")

    methods_parser = subparsers.add_parser("methods", help="Show the methods of one contract ABI")
    methods_parser.add_argument("name", help="ABI name (file name without suffix)")

    encode_parser = subparsers.add_parser("encode", help="Encode call data for a contract method")
    encode_parser.add_argument("name", help="ABI name (file name without suffix)")
    encode_parser.add_argument("method", help="Method name as listed by 'methods'")
    encode_parser.add_argument("args", nargs="*", help="Argument values in method order")
    return parser


def _abi_dir(args: argparse.Namespace) -> Path:
    return Path(args.abi_dir).expanduser() if args.abi_dir else DEFAULT_ABI_DIR


def _load_registry(args: argparse.Namespace) -> InterfaceRegistry:
    path = _abi_dir(args)
    if not args.abi_dir:
        seed_bundled_abis(path)
    return InterfaceRegistry.from_source(AbiDirectory(path))


def cmd_list_abis(args: argparse.Namespace) -> None:
    for name in AbiDirectory(_abi_dir(args)).list_available():
        print(name)


def cmd_methods(args: argparse.Namespace) -> None:
    registry = _load_registry(args)
    if args.name not in registry:
        raise CLIError(f"unknown ABI: {args.name}")
    for line in describe_methods(registry.load(args.name)):
        print(line)


def cmd_encode(args: argparse.Namespace) -> None:
    registry = _load_registry(args)
    try:
        method = registry.method(args.name, args.method)
    except KeyError as exc:
        raise CLIError(exc.args[0]) from exc
    if len(args.args) != len(method.inputs):
        raise CLIError(
            f"{method.signature} takes {len(method.inputs)} arguments, got {len(args.args)}"
        )
    values = [parse_value(raw, abi_type) for raw, abi_type in zip(args.args, method.input_types)]
    print("0x" + method.encode(values).hex())


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.debug or _should_debug():
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        if args.command == "console":
            from .console import console_main

            previous = signal.signal(signal.SIGTERM, _on_sigterm)
            try:
                console_main(config_path=args.config, abi_dir=args.abi_dir)
            finally:
                signal.signal(signal.SIGTERM, previous)
        elif args.command == "list-abis":
            cmd_list_abis(args)
        elif args.command == "methods":
            cmd_methods(args)
        elif args.command == "encode":
            cmd_encode(args)
        else:  # pragma: no cover - argparse enforces choices
            raise CLIError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:
        print("\nterminating program... (reason: interrupted)")
        print("terminated")
    except TerminationRequested as exc:
        print(f"\nterminating program... (reason: {exc.reason})")
        print("terminated")
    except (
        CLIError,
        ConfigurationError,
        InterfaceLoadError,
        AbiError,
        ValidationError,
        RuntimeError,
        OSError,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
