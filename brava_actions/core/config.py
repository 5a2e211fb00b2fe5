import json
import os
from pathlib import Path
from typing import Any

from brava_actions.core.constants.base import FEE_BASIS_POINTS

_CONFIG_ENV_KEYS = ("BRAVA_CONFIG_PATH", "BRAVA_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"

DEFAULT_GENESIS_TIMESTAMP = 1_700_000_000


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {cfg_path}: {exc}") from exc


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    Code that imported CONFIG at module import time sees the update.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_fee_settings() -> dict[str, Any]:
    fees = CONFIG.get("fees", {})
    recipient = fees.get("recipient")
    return {
        "recipient": str(recipient).strip() if recipient else None,
        "min_basis": int(fees.get("min_basis", 0)),
        "max_basis": int(fees.get("max_basis", FEE_BASIS_POINTS)),
    }


def get_simulation_settings() -> dict[str, Any]:
    simulation = CONFIG.get("simulation", {})
    return {
        "genesis_timestamp": int(
            simulation.get("genesis_timestamp", DEFAULT_GENESIS_TIMESTAMP)
        ),
    }
