"""Connection pool configuration for the shared HTTP session."""

import os
from typing import Any


class HTTPPoolConfig:
    """Dotted-key pool and timeout limits, overridable from the environment.

    Request headers are not configured here; they come from ``Settings``.
    """

    ENV_OVERRIDES = {
        "HTTP_POOL_TOTAL_LIMIT": "http.connection_pool.total_limit",
        "HTTP_POOL_PER_HOST_LIMIT": "http.connection_pool.per_host_limit",
        "HTTP_TIMEOUT_TOTAL": "http.timeout.total",
        "HTTP_TIMEOUT_CONNECT": "http.timeout.connect",
    }

    def __init__(self):
        self._config = {
            "http.connection_pool.total_limit": 20,
            "http.connection_pool.per_host_limit": 4,
            "http.connection_pool.dns_cache_ttl": 300,
            "http.connection_pool.keepalive_timeout": 30,
            # Session-wide ceilings; individual calls pass tighter timeouts
            "http.timeout.total": 60,
            "http.timeout.connect": 10,
        }
        self._load_from_environment()

    def _load_from_environment(self):
        for env_var, config_key in self.ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None:
                continue
            try:
                self._config[config_key] = int(raw)
            except ValueError:
                # Keep the default on malformed input
                continue

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (e.g., 'http.timeout.total')
            default: Default value if key not found
        """
        return self._config.get(key, default)


_config = HTTPPoolConfig()


def get_config(key: str, default: Any = None) -> Any:
    """Get configuration value using global config instance."""
    return _config.get(key, default)
