"""Connection settings for the Firebird adapter.

Settings are resolved from, in order of precedence:

  1. explicit values (CLI options)
  2. environment variables (DBMETA_HOST, DBMETA_PORT, DBMETA_USER,
     DBMETA_PASSWORD, DBMETA_CHARSET)
  3. an optional JSON settings file (DBMETA_CONFIG or --config)
  4. defaults (local connection, UTF8)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from dbmeta.core.errors import ConfigError

CONFIG_ENV = "DBMETA_CONFIG"
_ENV_KEYS = {
    "host": "DBMETA_HOST",
    "port": "DBMETA_PORT",
    "user": "DBMETA_USER",
    "password": "DBMETA_PASSWORD",
    "charset": "DBMETA_CHARSET",
}
DEFAULT_CHARSET = "UTF8"


@dataclass(frozen=True)
class ConnectionConfig:
    """Server and credentials used for every database the tool touches."""

    user: str
    password: str
    host: str | None = None
    port: int | None = None
    charset: str = DEFAULT_CHARSET

    def dsn(self, database: str) -> str:
        """
        Return the connection string for `database`.

        Without a host the database path is used as-is (embedded or local
        protocol); with a host it becomes `host[/port]:database`.
        """
        if not self.host:
            return database
        server = f"{self.host}/{self.port}" if self.port else self.host
        return f"{server}:{database}"

    def __repr__(self) -> str:
        return (
            f"ConnectionConfig(user={self.user!r}, password='***', host={self.host!r}, "
            f"port={self.port!r}, charset={self.charset!r})"
        )


def _read_settings_file(path: Path) -> dict[str, Any]:
    """Read a JSON settings file; keys match ConnectionConfig fields."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Settings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object.")
    # Accept both a flat object and {"connection": {...}}.
    section = payload.get("connection", payload)
    if not isinstance(section, dict):
        raise ConfigError(f"Settings file {path}: 'connection' must be an object.")
    return section


def _parse_port(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        port = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid port: {raw!r}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"Invalid port: {raw!r}")
    return port


def load_config(
    *,
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
    charset: str | None = None,
    config_file: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ConnectionConfig:
    """
    Resolve connection settings from explicit values, environment and file.

    Raises:
        ConfigError: If user or password cannot be resolved, or a setting is
            malformed.
    """
    env = os.environ if env is None else env

    file_path = config_file or env.get(CONFIG_ENV)
    from_file = _read_settings_file(Path(file_path)) if file_path else {}

    explicit = {
        "host": host,
        "port": port,
        "user": user,
        "password": password,
        "charset": charset,
    }
    resolved: dict[str, Any] = {}
    for key, env_key in _ENV_KEYS.items():
        value = explicit[key]
        if value is None or value == "":
            value = env.get(env_key) or from_file.get(key)
        resolved[key] = value

    if not resolved["user"]:
        raise ConfigError(
            f"Database user is not configured (use --user or {_ENV_KEYS['user']})."
        )
    if not resolved["password"]:
        raise ConfigError(
            "Database password is not configured "
            f"(use --password or {_ENV_KEYS['password']})."
        )

    host_value = str(resolved["host"] or "").strip()
    return ConnectionConfig(
        user=str(resolved["user"]),
        password=str(resolved["password"]),
        host=host_value or None,
        port=_parse_port(resolved["port"]),
        charset=str(resolved["charset"] or DEFAULT_CHARSET),
    )
