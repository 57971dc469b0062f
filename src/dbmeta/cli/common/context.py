"""Application context management for the CLI."""

from dataclasses import dataclass

from dbmeta.cli.common.exits import die
from dbmeta.core.adapters.firebird import FirebirdAdapter
from dbmeta.core.config import ConnectionConfig, load_config
from dbmeta.core.errors import ConfigError


@dataclass
class DbAppContext:
    """Application context holding connection settings and the Firebird adapter."""

    config: ConnectionConfig
    adapter: FirebirdAdapter
    verbose: bool = False


def build_db_context(
    *,
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
    charset: str | None = None,
    config_file: str | None = None,
    verbose: bool = False,
) -> DbAppContext:
    """Resolve connection settings and return the database command context.

    Exits with code 2 when the settings are incomplete or malformed.
    """
    try:
        config = load_config(
            host=host,
            port=port,
            user=user,
            password=password,
            charset=charset,
            config_file=config_file,
        )
    except ConfigError as exc:
        die(str(exc), code=2)
    return DbAppContext(config=config, adapter=FirebirdAdapter(config), verbose=verbose)
