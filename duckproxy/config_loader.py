"""Configuration loading from YAML, .env files and environment variables.

Settings are resolved once at startup into an immutable ``Settings`` value that
is handed to ``create_app``; nothing reads the environment after that.
Precedence, lowest first: built-in defaults, the YAML file, the ``.env`` file,
the process environment.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("duckproxy")

DEFAULT_CONFIG_PATH = "configs/config.yaml"

DEFAULT_UPSTREAM_BASE_URL = "https://duckduckgo.com"
DEFAULT_TOKEN_TIMEOUT = 10.0
DEFAULT_CHAT_TIMEOUT = 30.0
DEFAULT_MAX_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY_MS = 5000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8787

# Browser fingerprint the upstream expects on every call
DEFAULT_HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate",
    "Accept-Language": "zh-CN,zh;q=0.9",
    "Origin": "https://duckduckgo.com/",
    "Cookie": "l=wt-wt; ah=wt-wt; dcm=6",
    "Dnt": "1",
    "Priority": "u=1, i",
    "Referer": "https://duckduckgo.com/",
    "Sec-Ch-Ua": '"Microsoft Edge";v="129", "Not(A:Brand";v="8", "Chromium";v="129"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/127.0.0.0 Safari/537.36"
    ),
}


@dataclass(frozen=True)
class Settings:
    """Read-only runtime configuration shared by every request."""

    api_prefix: str = ""
    api_key: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    upstream_base_url: str = DEFAULT_UPSTREAM_BASE_URL
    token_timeout: float = DEFAULT_TOKEN_TIMEOUT
    chat_timeout: float = DEFAULT_CHAT_TIMEOUT
    max_retry_count: int = DEFAULT_MAX_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY_MS / 1000
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_HEADERS))
    )

    @property
    def status_url(self) -> str:
        return f"{self.upstream_base_url.rstrip('/')}/duckchat/v1/status"

    @property
    def chat_url(self) -> str:
        return f"{self.upstream_base_url.rstrip('/')}/duckchat/v1/chat"


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def load_config(path: Optional[str] = None, env_values: Optional[Mapping[str, str]] = None) -> dict:
    """Load the optional YAML config file.

    A missing file is not an error; the gateway runs on defaults and
    environment variables alone.

    Args:
        path: Path to the config file. Defaults to DUCKPROXY_CONFIG, or
              configs/config.yaml in the project root.
        env_values: Extra variables for ``${VAR}`` substitution, consulted
              before the process environment.

    Returns:
        Parsed configuration dictionary.
    """
    if path is None:
        path = os.getenv("DUCKPROXY_CONFIG", DEFAULT_CONFIG_PATH)
    config_path = resolve_config_path(path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return {}

    logger.info(f"Loading configuration from {config_path}")
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        logger.warning(f"Config file {config_path} is not a mapping, ignoring it")
        return {}
    return _substitute_env_vars(data, env_values)


def _substitute_env_vars(obj: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively substitute ``${VAR}`` and ``$VAR`` in configuration values.

    Unset variables keep their literal placeholder and log a warning.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                    f"The literal placeholder will be used."
                )
                return match.group(0)
            return value

        return pattern.sub(replace_var, obj)
    return obj


def _get(cfg: Mapping, *keys: str):
    cur: Any = cfg
    for key in keys:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
    return cur


def _to_int(value, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r, using %s", name, value, default)
        return default


def _to_float(value, name: str, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r, using %s", name, value, default)
        return default


def normalize_api_prefix(prefix: Optional[str]) -> str:
    """Turn "/", "api/" or "/api/" into "" or "/api" for route mounting."""
    if not prefix:
        return ""
    stripped = str(prefix).strip().strip("/")
    return f"/{stripped}" if stripped else ""


def load_settings(
    config_path: Optional[str] = None,
    env_path: Optional[str] = ".env",
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve ``Settings`` from the config file, a .env file and the environment.

    Environment variable names:
    ``API_PREFIX``, ``APIKEY``, ``MAX_RETRY_COUNT``, ``RETRY_DELAY`` (ms),
    ``PORT``; plus ``HOST``, ``LOG_LEVEL``, ``TOKEN_TIMEOUT``,
    ``CHAT_TIMEOUT`` and ``UPSTREAM_BASE_URL``.
    """
    env: dict[str, str] = {}
    if env_path:
        env_file = Path(env_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env.update(load_env_values(env_file))
    env.update(os.environ if environ is None else environ)

    cfg = load_config(config_path, env_values=env)

    headers = dict(DEFAULT_HEADERS)
    extra_headers = _get(cfg, "upstream", "headers")
    if isinstance(extra_headers, Mapping):
        headers.update({str(k): str(v) for k, v in extra_headers.items()})

    api_prefix = env.get("API_PREFIX", _get(cfg, "api_prefix"))
    api_key = env.get("APIKEY", _get(cfg, "api_key")) or ""
    host = env.get("HOST") or _get(cfg, "server", "host") or DEFAULT_HOST
    port = _to_int(env.get("PORT") or _get(cfg, "server", "port"), "PORT", DEFAULT_PORT)
    log_level = env.get("LOG_LEVEL") or _get(cfg, "logging", "level") or "INFO"
    base_url = (
        env.get("UPSTREAM_BASE_URL")
        or _get(cfg, "upstream", "base_url")
        or DEFAULT_UPSTREAM_BASE_URL
    )
    token_timeout = _to_float(
        env.get("TOKEN_TIMEOUT", _get(cfg, "upstream", "token_timeout")),
        "TOKEN_TIMEOUT",
        DEFAULT_TOKEN_TIMEOUT,
    )
    chat_timeout = _to_float(
        env.get("CHAT_TIMEOUT", _get(cfg, "upstream", "chat_timeout")),
        "CHAT_TIMEOUT",
        DEFAULT_CHAT_TIMEOUT,
    )
    max_retry_count = _to_int(
        env.get("MAX_RETRY_COUNT", _get(cfg, "retry", "max_retry_count")),
        "MAX_RETRY_COUNT",
        DEFAULT_MAX_RETRY_COUNT,
    )
    retry_delay_ms = _to_float(
        env.get("RETRY_DELAY", _get(cfg, "retry", "retry_delay_ms")),
        "RETRY_DELAY",
        DEFAULT_RETRY_DELAY_MS,
    )

    settings = Settings(
        api_prefix=normalize_api_prefix(api_prefix),
        api_key=str(api_key),
        host=str(host),
        port=port,
        log_level=str(log_level).upper(),
        upstream_base_url=str(base_url),
        token_timeout=token_timeout,
        chat_timeout=chat_timeout,
        max_retry_count=max(1, max_retry_count),
        retry_delay=max(0.0, retry_delay_ms / 1000),
        headers=MappingProxyType(headers),
    )
    logger.info(
        "Settings loaded: prefix=%r, upstream=%s, retries=%d, api_key=%s",
        settings.api_prefix,
        settings.upstream_base_url,
        settings.max_retry_count,
        "set" if settings.api_key else "unset",
    )
    return settings
