"""
flux-cors central configuration.

Every setting lives in one frozen dataclass.
Priority: environment variable > .env file > config.json > default

Usage:
    from fluxcors.config import get_config, options_from_config
    cfg = get_config()
    options = options_from_config(cfg)
"""

import os
import json
from dataclasses import dataclass
from typing import Optional

from dotenv import dotenv_values

from fluxcors.policy import Options


@dataclass(frozen=True)
class Config:
    """Central configuration (immutable)"""

    # CORS policy (list fields are comma-separated)
    cors_allowed_origins: str = ""      # empty -> every origin
    cors_allowed_methods: str = ""      # empty -> GET, POST, HEAD
    cors_allowed_headers: str = ""      # empty -> Origin, Accept, Content-Type, X-Requested-With
    cors_exposed_headers: str = ""
    cors_allow_credentials: bool = False
    cors_max_age: int = 0               # seconds, 0 omits Access-Control-Max-Age
    cors_options_passthrough: bool = False
    cors_debug: bool = False

    # HTTP server
    server_host: str = "127.0.0.1"
    server_port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"            # "text" | "json"
    log_file: str = ""                  # empty -> stderr only
    log_max_bytes: int = 10_485_760     # 10MB
    log_backup_count: int = 5


def _str_to_bool(s) -> bool:
    """Convert "true"/"1"/"yes" (or a JSON bool) to bool"""
    if isinstance(s, bool):
        return s
    return str(s).lower() in ("true", "1", "yes")


def _list_to_str(value) -> str:
    """config.json may give lists; env vars give comma-separated strings"""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


# ENV_NAME -> (field_name, type_converter)
_ENV_MAP = {
    "CORS_ALLOWED_ORIGINS": ("cors_allowed_origins", _list_to_str),
    "CORS_ALLOWED_METHODS": ("cors_allowed_methods", _list_to_str),
    "CORS_ALLOWED_HEADERS": ("cors_allowed_headers", _list_to_str),
    "CORS_EXPOSED_HEADERS": ("cors_exposed_headers", _list_to_str),
    "CORS_ALLOW_CREDENTIALS": ("cors_allow_credentials", _str_to_bool),
    "CORS_MAX_AGE": ("cors_max_age", int),
    "CORS_OPTIONS_PASSTHROUGH": ("cors_options_passthrough", _str_to_bool),
    "CORS_DEBUG": ("cors_debug", _str_to_bool),
    "SERVER_HOST": ("server_host", str),
    "SERVER_PORT": ("server_port", int),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "LOG_FILE": ("log_file", str),
    "LOG_MAX_BYTES": ("log_max_bytes", int),
    "LOG_BACKUP_COUNT": ("log_backup_count", int),
}


_FIELD_BOUNDS = {
    "cors_max_age": (0, 86400),
    "server_port": (0, 65535),
    "log_max_bytes": (1024, 1_073_741_824),
    "log_backup_count": (0, 100),
}


def _clamp(field_name, value):
    """Clamp a value to its field bounds"""
    if field_name in _FIELD_BOUNDS:
        lo, hi = _FIELD_BOUNDS[field_name]
        return type(value)(max(lo, min(hi, value)))
    return value


def _load_config_file(path: str = "config.json") -> dict:
    """Load config.json ({} when missing or invalid)"""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except (json.JSONDecodeError, OSError):
        return {}


def _load_env_file(path: Optional[str] = ".env") -> dict:
    """Load a .env file without touching os.environ ({} when missing)"""
    if not path or not os.path.exists(path):
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def load_config(config_path: str = "config.json", env_path: Optional[str] = ".env") -> Config:
    """Load configuration (environment > .env > config.json > defaults)"""
    file_config = _load_config_file(config_path)
    env_file = _load_env_file(env_path)
    overrides = {}

    for env_name, (field_name, converter) in _ENV_MAP.items():
        # 1. process environment, then .env
        env_val = os.environ.get(env_name)
        if env_val is None:
            env_val = env_file.get(env_name)
        if env_val is not None:
            try:
                overrides[field_name] = _clamp(field_name, converter(env_val))
            except (ValueError, TypeError):
                pass  # keep the default
            continue

        # 2. config.json
        if field_name in file_config:
            try:
                overrides[field_name] = _clamp(field_name, converter(file_config[field_name]))
            except (ValueError, TypeError):
                pass

    return Config(**overrides)


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def options_from_config(cfg: Config) -> Options:
    """Build CORS Options from the comma-separated config fields"""
    return Options(
        allowed_origins=_split(cfg.cors_allowed_origins),
        allowed_methods=_split(cfg.cors_allowed_methods),
        allowed_headers=_split(cfg.cors_allowed_headers),
        exposed_headers=_split(cfg.cors_exposed_headers),
        max_age=cfg.cors_max_age,
        allow_credentials=cfg.cors_allow_credentials,
        options_passthrough=cfg.cors_options_passthrough,
        debug=cfg.cors_debug,
    )


# Singleton cache
_cached_config: Optional[Config] = None


def get_config(config_path: str = "config.json") -> Config:
    """Return the configuration singleton (loaded on first call)"""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config(config_path)
    return _cached_config


def reset_config() -> None:
    """Clear the configuration cache (tests)"""
    global _cached_config
    _cached_config = None
