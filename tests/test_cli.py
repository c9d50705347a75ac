import json
import signal
from pathlib import Path

import pytest

from abi_wizard import cli

TOKEN_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


@pytest.fixture
def abi_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "abis"
    directory.mkdir()
    (directory / "Token.abi").write_text(json.dumps(TOKEN_ABI))
    return directory


def test_build_parser_requires_a_command() -> None:
    parser = cli.build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args([])
    args = parser.parse_args(["--debug", "encode", "Token", "transfer", "0x01", "2"])
    assert args.debug is True
    assert args.args == ["0x01", "2"]


def test_list_abis(abi_dir: Path, capsys) -> None:
    cli.main(["--abi-dir", str(abi_dir), "list-abis"])
    assert capsys.readouterr().out.split() == ["Token"]


def test_methods_table(abi_dir: Path, capsys) -> None:
    cli.main(["--abi-dir", str(abi_dir), "methods", "Token"])
    out = capsys.readouterr().out
    assert "0x70a08231" in out and "balanceOf(address)" in out
    assert "transfer(address,uint256) [Write]" in out


def test_encode_prints_call_data(abi_dir: Path, capsys) -> None:
    holder = "0x" + "34" * 20
    cli.main(["--abi-dir", str(abi_dir), "encode", "Token", "transfer", holder, "25"])
    out = capsys.readouterr().out.strip()
    assert out == "0xa9059cbb" + "00" * 12 + "34" * 20 + "%064x" % 25


@pytest.mark.parametrize(
    "argv, message",
    [
        (["encode", "Token", "transfer", "0x01"], "takes 2 arguments"),
        (["encode", "Token", "missing"], "no method missing"),
        (["encode", "Token", "transfer", "0x1234", "1"], "address value"),
        (["methods", "Nope"], "unknown ABI"),
    ],
)
def test_errors_exit_with_status_one(abi_dir: Path, capsys, argv, message) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--abi-dir", str(abi_dir), *argv])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert message in err


def test_console_interrupt_prints_termination(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    def interrupted(**kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("abi_wizard.console.console_main", interrupted)
    cli.main(["console"])
    out = capsys.readouterr().out
    assert "terminating program... (reason: interrupted)" in out
    assert out.rstrip().endswith("terminated")


def test_sigterm_takes_the_same_path(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    def terminated(**kwargs):
        handler = signal.getsignal(signal.SIGTERM)
        handler(signal.SIGTERM, None)

    previous = signal.getsignal(signal.SIGTERM)
    monkeypatch.setattr("abi_wizard.console.console_main", terminated)
    cli.main(["console"])

    out = capsys.readouterr().out
    assert "terminating program... (reason: SIGTERM)" in out
    assert "terminated" in out
    assert signal.getsignal(signal.SIGTERM) == previous
