from pathlib import Path

import pytest
import yaml

from abi_wizard.config import (
    ConfigurationError,
    Settings,
    config_exists,
    load_settings,
    parse_duration,
    write_settings,
)


def test_load_settings_prefers_environment_over_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
        rpc_url: http://filehost:8545
        chain_id: 5
        wait_time: 2s
        """
    )
    env_map = {"ABI_WIZARD_RPC_URL": "https://envhost", "ABI_WIZARD_CHAIN_ID": "11155111"}

    settings = load_settings(config_path=config_path, env=env_map)

    assert settings.rpc_url == "https://envhost"
    assert settings.chain_id == 11155111
    assert settings.wait_time == "2s"
    assert settings.private_key is None


def test_overrides_win_over_everything(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("rpc_url: http://filehost\n")
    settings = load_settings(
        config_path=config_path,
        env={"ABI_WIZARD_RPC_URL": "http://envhost"},
        overrides={"rpc_url": "http://override", "chain_id": 1},
    )
    assert settings.rpc_url == "http://override"
    assert settings.chain_id == 1


def test_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("abi_wizard.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    settings = load_settings(env={})
    assert settings == Settings()
    assert settings.wait_seconds == 5.0


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(config_path=tmp_path / "missing.yaml", env={})


@pytest.mark.parametrize(
    "content",
    ["- just\n- a list\n", "chain_id: abc\n", "chain_id: -3\n", "wait_time: soon\n", "rpc_url: [unclosed\n"],
)
def test_invalid_config_files(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(content)
    with pytest.raises(ConfigurationError):
        load_settings(config_path=config_path, env={})


@pytest.mark.parametrize(
    "raw, seconds",
    [("5s", 5.0), ("500ms", 0.5), ("1m30s", 90.0), ("2h", 7200.0), ("1.5s", 1.5)],
)
def test_parse_duration(raw: str, seconds: float) -> None:
    assert parse_duration(raw) == pytest.approx(seconds)


@pytest.mark.parametrize("raw", ["", "5", "s", "5x", "5s extra"])
def test_parse_duration_rejects_garbage(raw: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_duration(raw)


def test_write_settings_round_trip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.yaml"
    write_settings(config_path, Settings(rpc_url="http://node:8545", chain_id=10))

    assert config_exists(config_path)
    data = yaml.safe_load(config_path.read_text())
    assert data == {"rpc_url": "http://node:8545", "chain_id": 10, "wait_time": "5s"}
    assert load_settings(config_path=config_path, env={}).chain_id == 10


def test_write_settings_never_adds_a_private_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.yaml"
    monkeypatch.setattr("abi_wizard.config.DEFAULT_CONFIG_PATH", config_path)
    key = "ab" * 32
    settings = load_settings(env={"ABI_WIZARD_PRIVATE_KEY": key})
    assert settings.private_key == key

    write_settings(config_path, settings)

    assert "private_key" not in yaml.safe_load(config_path.read_text())


def test_write_settings_keeps_existing_file_entries(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("private_key: cd\nlabel: staging\nchain_id: 1\n")

    write_settings(config_path, Settings(rpc_url="http://node:8545", private_key="ef", chain_id=5))

    data = yaml.safe_load(config_path.read_text())
    assert data == {
        "private_key": "cd",
        "label": "staging",
        "chain_id": 5,
        "rpc_url": "http://node:8545",
        "wait_time": "5s",
    }
