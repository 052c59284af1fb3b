# voting_node/config.py
import copy
import logging
import os
from typing import Any, Callable, Dict, List, Optional

import yaml

CONFIG_FILENAME = "voting_config.yaml"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "persistence": {
        "driver": "memory",  # memory | json | sqlite
        "json_path": "data/voting_state.json",
        "sqlite_path": "data/voting.db",
    },
    "voting": {
        "max_choices": 10,
        "max_choice_length": 64,
        "default_duration_sec": 7 * 24 * 60 * 60,
        # optimistic-concurrency attempts before answering "contention"
        "max_attempts": 5,
    },
    "finalization": {
        "allow_creator_early": True,
        "strict_refinalize": False,
        "finalize_on_read": False,
        "sweep_enabled": False,
        "sweep_interval_sec": 30,
    },
    "security": {
        "require_signed_votes": False,
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
        # base URL of the frontend voting page, used to build voting links
        "frontend_base_url": "http://localhost:5173",
    },
    "cors": {
        "origins": [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    },
}


def _bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes", "on")


# -------- ENV overrides --------
_ENV_MAP: Dict[tuple, tuple] = {
    ("persistence", "driver"): ("VOTING_PERSISTENCE_DRIVER", str),
    ("persistence", "sqlite_path"): ("VOTING_SQLITE_PATH", str),
    ("persistence", "json_path"): ("VOTING_JSON_PATH", str),
    ("voting", "max_attempts"): ("VOTING_MAX_ATTEMPTS", int),
    ("security", "require_signed_votes"): ("VOTING_REQUIRE_SIGNED_VOTES", _bool),
    ("finalization", "sweep_enabled"): ("VOTING_SWEEP_ENABLED", _bool),
    ("logging", "level"): ("VOTING_LOG_LEVEL", str),
    ("server", "host"): ("VOTING_HOST", str),
    ("server", "port"): ("VOTING_PORT", int),
    ("server", "frontend_base_url"): ("VOTING_FRONTEND_URL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        caster: Callable[[str], Any] = cast
        try:
            casted = caster(val)
        except ValueError as e:
            raise ValueError(f"invalid value for {env_name}: {val!r}") from e
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULT)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads YAML config from ``path``, else $VOTING_CONFIG, else
    ./voting_config.yaml. A missing file means defaults; a file that exists
    but cannot be parsed is an error. ENV overrides are applied last.
    """
    path = path or os.getenv("VOTING_CONFIG") or os.path.join(os.getcwd(), CONFIG_FILENAME)
    cfg = default_config()

    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: top-level YAML must be a mapping")
        cfg = _deep_merge(cfg, data)

    cfg = _apply_env_overrides(cfg)

    origins = cfg.get("cors", {}).get("origins")
    if isinstance(origins, str):
        cfg["cors"]["origins"] = [origins]

    return cfg


# -------- Small helpers used by the app --------
def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def get_frontend_base_url(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("frontend_base_url") or "")


def get_cors_origins(cfg: Dict[str, Any]) -> List[str]:
    return list(cfg.get("cors", {}).get("origins", []))


def configure_logging(cfg: Dict[str, Any]) -> None:
    level_name = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("voting_node").setLevel(level)
