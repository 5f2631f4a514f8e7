"""
Configuration management for MONGO_UOW.

MongoConfig collects the connection settings for the backing MongoDB
deployment. Every setting can come from an environment variable or be
passed directly; ``validate()`` must pass before a factory or unit of work
will use the configuration.
"""

import os
from urllib.parse import quote_plus

from .constants import (
    DEFAULT_AUTH_SOURCE,
    DEFAULT_DATABASE,
    DEFAULT_HOST,
    DEFAULT_MAX_IDLE_TIME,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    DEFAULT_TIMEOUT,
    MAX_PORT,
    MIN_PORT,
)
from .exceptions import ConfigurationError


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class MongoConfig:
    """
    MongoDB connection configuration.

    Example:
        # Using environment variables
        config = MongoConfig()

        # Or using direct parameters
        config = MongoConfig(host="db.internal", port=27017, database="shop")
        config.validate()
        uri = config.connection_string()
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        auth_source: str | None = None,
        max_pool_size: int | None = None,
        min_pool_size: int | None = None,
        max_idle_time: float | None = None,
        timeout: float | None = None,
        ssl: bool | None = None,
        replica_set: str | None = None,
        direct_connection: bool | None = None,
    ):
        """
        Initialize configuration.

        Args:
            host: Server host (defaults to MONGO_HOST or "localhost")
            port: Server port (defaults to MONGO_PORT or 27017)
            database: Database name (defaults to MONGO_DATABASE or "test")
            username: Username (defaults to MONGO_USERNAME)
            password: Password (defaults to MONGO_PASSWORD)
            auth_source: Authentication database (defaults to MONGO_AUTH_SOURCE or "admin")
            max_pool_size: Maximum pool size (defaults to MONGO_MAX_POOL_SIZE or 100)
            min_pool_size: Minimum pool size (defaults to MONGO_MIN_POOL_SIZE or 5)
            max_idle_time: Pooled connection idle timeout in seconds
                (defaults to MONGO_MAX_IDLE_TIME or 30)
            timeout: Connect/server selection timeout in seconds
                (defaults to MONGO_TIMEOUT or 10)
            ssl: Enable TLS (defaults to MONGO_SSL)
            replica_set: Replica set name (defaults to MONGO_REPLICA_SET)
            direct_connection: Connect directly to a single host
                (defaults to MONGO_DIRECT_CONNECTION)
        """
        self.host = host if host is not None else os.getenv("MONGO_HOST", DEFAULT_HOST)
        self.port = port if port is not None else int(os.getenv("MONGO_PORT", str(DEFAULT_PORT)))
        self.database = (
            database if database is not None else os.getenv("MONGO_DATABASE", DEFAULT_DATABASE)
        )
        self.username = username if username is not None else os.getenv("MONGO_USERNAME", "")
        self.password = password if password is not None else os.getenv("MONGO_PASSWORD", "")
        self.auth_source = (
            auth_source
            if auth_source is not None
            else os.getenv("MONGO_AUTH_SOURCE", DEFAULT_AUTH_SOURCE)
        )
        self.max_pool_size = (
            max_pool_size
            if max_pool_size is not None
            else int(os.getenv("MONGO_MAX_POOL_SIZE", str(DEFAULT_MAX_POOL_SIZE)))
        )
        self.min_pool_size = (
            min_pool_size
            if min_pool_size is not None
            else int(os.getenv("MONGO_MIN_POOL_SIZE", str(DEFAULT_MIN_POOL_SIZE)))
        )
        self.max_idle_time = (
            max_idle_time
            if max_idle_time is not None
            else float(os.getenv("MONGO_MAX_IDLE_TIME", str(DEFAULT_MAX_IDLE_TIME)))
        )
        self.timeout = (
            timeout if timeout is not None else float(os.getenv("MONGO_TIMEOUT", str(DEFAULT_TIMEOUT)))
        )
        self.ssl = ssl if ssl is not None else _env_bool("MONGO_SSL")
        self.replica_set = (
            replica_set if replica_set is not None else os.getenv("MONGO_REPLICA_SET", "")
        )
        self.direct_connection = (
            direct_connection
            if direct_connection is not None
            else _env_bool("MONGO_DIRECT_CONNECTION")
        )

    @classmethod
    def from_env(cls) -> "MongoConfig":
        """Build a configuration purely from environment variables."""
        return cls()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if not self.host:
            raise ConfigurationError("host cannot be empty", config_key="host")

        if not isinstance(self.port, int) or not MIN_PORT <= self.port <= MAX_PORT:
            raise ConfigurationError(
                f"port must be between {MIN_PORT} and {MAX_PORT}",
                config_key="port",
                config_value=self.port,
            )

        if not self.database:
            raise ConfigurationError("database name cannot be empty", config_key="database")

        if self.max_pool_size < 0:
            raise ConfigurationError(
                f"max_pool_size must be >= 0, got {self.max_pool_size}",
                config_key="max_pool_size",
                config_value=self.max_pool_size,
            )

        if self.min_pool_size < 0:
            raise ConfigurationError(
                f"min_pool_size must be >= 0, got {self.min_pool_size}",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.max_pool_size and self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.timeout <= 0:
            raise ConfigurationError(
                f"timeout must be > 0, got {self.timeout}",
                config_key="timeout",
                config_value=self.timeout,
            )

    def _query_params(self) -> list[str]:
        params = []
        if self.auth_source and self.username:
            params.append(f"authSource={self.auth_source}")
        if self.max_pool_size > 0:
            params.append(f"maxPoolSize={self.max_pool_size}")
        if self.min_pool_size > 0:
            params.append(f"minPoolSize={self.min_pool_size}")
        if self.ssl:
            params.append("ssl=true")
        if self.replica_set:
            params.append(f"replicaSet={self.replica_set}")
        if self.direct_connection:
            params.append("directConnection=true")
        return params

    def _build_uri(self, password: str) -> str:
        uri = f"{DEFAULT_SCHEME}://"
        if self.username and self.password:
            uri += f"{quote_plus(self.username)}:{password}@"
        uri += f"{self.host}:{self.port}/{self.database}"

        params = self._query_params()
        if params:
            uri += "?" + "&".join(params)
        return uri

    def connection_string(self) -> str:
        """
        Assemble the MongoDB connection URI.

        Format: ``mongodb://[user:pass@]host:port/database[?param=val&...]``.
        Query parameters appear only when their setting is non-default.
        """
        return self._build_uri(quote_plus(self.password))

    def redacted_connection_string(self) -> str:
        """Connection URI with the password masked, safe for logs."""
        return self._build_uri("****")

    def __repr__(self) -> str:
        return f"MongoConfig(uri={self.redacted_connection_string()!r})"
