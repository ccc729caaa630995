"""Configuration management for named REST APIs."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "MONDOCORE_REST"


class ApiConfig(BaseModel):
    """Settings for one logical API."""

    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str = Field(default="")

    # Wrapper-level timeout in milliseconds; 0 disables it
    timeout_ms: int = Field(default=0, ge=0)

    # Transport timeouts in seconds
    read_timeout: float = Field(default=30.0)
    connect_timeout: float = Field(default=10.0)
    write_timeout: float = Field(default=30.0)
    pool_timeout: float = Field(default=30.0)

    verify_ssl: bool = Field(default=True)
    follow_redirects: bool = Field(default=True)
    default_headers: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_environment(cls, name: str) -> "ApiConfig":
        """Create configuration for ``name`` from environment variables.

        Variables are named ``MONDOCORE_REST_<NAME>_<SETTING>``, where
        ``<NAME>`` is the API name upper-cased with every other character
        replaced by ``_``. For an API called ``billing-v2``:

        - ``MONDOCORE_REST_BILLING_V2_BASE_URL``
        - ``MONDOCORE_REST_BILLING_V2_TIMEOUT_MS``
        - ``MONDOCORE_REST_BILLING_V2_READ_TIMEOUT``
        - ``MONDOCORE_REST_BILLING_V2_CONNECT_TIMEOUT``
        - ``MONDOCORE_REST_BILLING_V2_VERIFY_SSL``
        - ``MONDOCORE_REST_BILLING_V2_FOLLOW_REDIRECTS``
        """
        prefix = env_prefix(name)
        config_data = {
            "name": name,
            "base_url": os.getenv(f"{prefix}_BASE_URL", ""),
            "timeout_ms": max(0, _get_int(f"{prefix}_TIMEOUT_MS", 0)),
            "read_timeout": _get_float(f"{prefix}_READ_TIMEOUT", 30.0),
            "connect_timeout": _get_float(f"{prefix}_CONNECT_TIMEOUT", 10.0),
            "verify_ssl": _get_bool(f"{prefix}_VERIFY_SSL", True),
            "follow_redirects": _get_bool(f"{prefix}_FOLLOW_REDIRECTS", True),
        }

        return cls(**config_data)


def env_prefix(name: str) -> str:
    """Return the environment variable prefix for an API name."""
    return f"{ENV_PREFIX}_{re.sub(r'[^0-9A-Za-z]', '_', name).upper()}"


def _get_int(key: str, default: int) -> int:
    """Get integer environment variable, ignoring malformed values."""
    try:
        value = os.getenv(key)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get float environment variable, ignoring malformed values."""
    try:
        value = os.getenv(key)
        return float(value) if value is not None else default
    except ValueError:
        return default


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_bool(key: str, default: bool) -> bool:
    """Read a MONDOCORE_REST_* flag; unrecognised values keep the default."""
    value = (os.getenv(key) or "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


# Per-name configuration cache
_configs: Dict[str, ApiConfig] = {}


def get_api_config(name: str, *, reload: bool = False) -> ApiConfig:
    """Get the cached configuration for ``name``, loading it on first use."""
    if reload or name not in _configs:
        _configs[name] = ApiConfig.from_environment(name)

    return _configs[name]


# Short names accepted in MONDOCORE_REST_ENV
_ENV_ALIASES = {"local": "localdev", "dev": "development", "prod": "production"}


def load_dotenv_for_rest(path: Optional[Path] = None, *, override: bool = False) -> Optional[Path]:
    """Load ``MONDOCORE_REST_*`` settings from a .env file.

    Without a path, ``.env.<env>`` in the working directory is tried first
    and then ``.env``. ``<env>`` comes from ``MONDOCORE_REST_ENV`` (or
    ``MODE``), defaulting to ``localdev``.

    Returns
    -------
    Path or None
        The file that was loaded, if any
    """
    if path is not None:
        candidates = [path]
    else:
        env = (os.getenv(f"{ENV_PREFIX}_ENV") or os.getenv("MODE") or "localdev").strip().lower()
        env = _ENV_ALIASES.get(env, env)
        candidates = [Path.cwd() / f".env.{env}", Path.cwd() / ".env"]

    for candidate in candidates:
        if candidate.exists():
            load_dotenv(candidate, override=override)
            return candidate
    return None
