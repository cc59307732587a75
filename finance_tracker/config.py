"""Configuration utilities for the Finance Tracker service.

Settings come from an optional JSON file and the process environment, with
environment variables taking precedence over the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'finance_tracker.db'}"
DEFAULT_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

# Environment variable -> AppConfig field.
ENV_VARS: Dict[str, str] = {
    "DATABASE_URL": "database_url",
    "PORT": "port",
    "CORS_ORIGINS": "cors_origins",
    "SECRET_KEY": "secret_key",
    "LOG_LEVEL": "log_level",
    "REQUEST_TIMEOUT": "request_timeout",
}


def _split_origins(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(o).strip().rstrip("/") for o in items if str(o).strip()]


@dataclass
class AppConfig:
    database_url: str = DEFAULT_DATABASE_URL
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    secret_key: str = "dev-key-change-me"
    log_level: str = "INFO"
    request_timeout: float = 30.0

    @staticmethod
    def load(
        config_path: Optional[str | Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """Load config from JSON if provided, then apply environment overrides.

        JSON format (every key optional):
        {
          "database_url": "postgresql://...",
          "port": 5000,
          "cors_origins": ["http://localhost:3000"],
          "log_level": "DEBUG",
          "request_timeout": 15
        }
        """

        env = os.environ if env is None else env
        raw: Dict[str, object] = {}

        if config_path:
            p = Path(config_path)
            if p.exists():
                with p.open("r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    raw.update({k: v for k, v in loaded.items() if k in ENV_VARS.values()})

        for var, key in ENV_VARS.items():
            value = env.get(var)
            if value not in (None, ""):
                raw[key] = value

        cfg = AppConfig()
        if "database_url" in raw:
            cfg.database_url = str(raw["database_url"])
        if "port" in raw:
            cfg.port = _parse_int("port", raw["port"])
        if "cors_origins" in raw:
            cfg.cors_origins = _split_origins(raw["cors_origins"])
        if "secret_key" in raw:
            cfg.secret_key = str(raw["secret_key"])
        if "log_level" in raw:
            cfg.log_level = str(raw["log_level"]).upper()
        if "request_timeout" in raw:
            cfg.request_timeout = _parse_float("request_timeout", raw["request_timeout"])
        return cfg

    def engine_options(self) -> Dict[str, object]:
        """SQLAlchemy engine options carrying the request timeout budget."""
        if self.database_url.startswith("sqlite"):
            return {"connect_args": {"timeout": self.request_timeout}}
        return {"pool_timeout": self.request_timeout, "pool_pre_ping": True}


def _parse_int(name: str, value) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"Invalid {name}: {value!r}")
    return parsed


def _parse_float(name: str, value) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"Invalid {name}: {value!r}")
    return parsed
