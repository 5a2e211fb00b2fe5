from __future__ import annotations

import copy
from pathlib import Path

import pytest
from eth_utils import to_checksum_address

import brava_actions.core.config as config
from brava_actions.core.admin_vault import InMemoryAdminVault
from brava_actions.core.simulation.chain import SimulatedChain


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def test_resolve_config_path_defaults_to_repo_root(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("BRAVA_CONFIG_PATH", raising=False)
    monkeypatch.delenv("BRAVA_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("BRAVA_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.example.json"


def test_explicit_path_wins_over_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("BRAVA_CONFIG_PATH", "config.example.json")
    explicit = tmp_path / "other.json"
    assert config.resolve_config_path(explicit) == explicit


def test_load_config_json_supports_env_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("BRAVA_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    cfg = config.load_config_json()
    assert isinstance(cfg.get("fees"), dict)
    assert cfg["fees"]["max_basis"] == 500


def test_load_config_json_missing_and_invalid(tmp_path: Path) -> None:
    missing = tmp_path / "missing.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        config.load_config_json(broken)


def test_fee_settings_defaults(restore_global_config: None) -> None:
    config.set_config({})
    assert config.get_fee_settings() == {
        "recipient": None,
        "min_basis": 0,
        "max_basis": 10_000,
    }
    with pytest.raises(ValueError, match="recipient"):
        InMemoryAdminVault.from_config()


def test_admin_vault_and_chain_from_config(restore_global_config: None) -> None:
    repo_root = Path(__file__).resolve().parents[2]
    config.load_config(repo_root / "config.example.json", require_exists=True)

    vault = InMemoryAdminVault.from_config()
    assert vault.fee_config.max_basis == 500
    assert vault.fee_config.recipient == to_checksum_address(
        "0x000000000000000000000000000000000000fee5"
    )

    config.set_config({"simulation": {"genesis_timestamp": 42}})
    assert SimulatedChain().timestamp == 42
