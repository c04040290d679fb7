"""
Configuration loader for Hugo Reader.

Looks for config.yaml in this order:
1. Environment variable CONFIG_PATH
2. ./config.yaml (local development)
3. ~/.hugo-reader.yaml (per-user settings)
4. Falls back to default config
"""

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_USER_AGENT = "HugoReader/1.0.0"
DEFAULT_MAX_RESPONSE_BYTES = 16 * 1024 * 1024


class Config:
    def __init__(self, config_path: str = None):
        # Determine config path in order of priority
        home_config = Path.home() / ".hugo-reader.yaml" if os.getenv("HOME") else None
        if config_path:
            # Explicitly provided path
            self.config_path = Path(config_path)
        elif os.getenv("CONFIG_PATH"):
            # Environment variable override
            self.config_path = Path(os.getenv("CONFIG_PATH"))
        elif Path("./config.yaml").exists():
            # Local development (project root)
            self.config_path = Path("./config.yaml")
        elif home_config is not None and home_config.exists():
            self.config_path = home_config
        else:
            # No config found, will use defaults
            self.config_path = None

        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load configuration from the YAML file.

        Returns default config if file not found.
        """
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
                    print(f"✓ Loaded config from: {self.config_path}")
                    return config_data
            except Exception as e:
                print(f"✗ Error loading config from {self.config_path}: {e}")
        elif self.config_path:
            print(f"⚠ Config file not found, using defaults\n  Tried: {self.config_path}")

        # Return default config if file not found or error occurred
        return {
            "reader": {
                "server_name": "hugo-reader",
                "log_level": "info",
                "server": {"host": "0.0.0.0", "port": 8002},
                "http": {
                    "timeout_seconds": 10,
                    "user_agent": DEFAULT_USER_AGENT,
                    "max_response_bytes": DEFAULT_MAX_RESPONSE_BYTES,
                },
                "cache": {
                    "default_ttl_seconds": 300,
                    "max_bytes": 64 * 1024 * 1024,
                    "kind_ttl_seconds": {"search": 120, "discovery": 600},
                },
                "content": {"default_limit": 50, "max_limit": 100},
                "search": {"default_limit": 20, "max_limit": 100},
                "discovery": {"default_limit": 50, "max_limit": 200},
            }
        }

    def _section(self, name: str) -> dict[str, Any]:
        section = self._config.get("reader", {}).get(name, {})
        return section if isinstance(section, dict) else {}

    @property
    def server_name(self) -> str:
        env_name = os.getenv("MCP_SERVER_NAME")
        if env_name:
            return env_name
        return self._config.get("reader", {}).get("server_name", "hugo-reader")

    @property
    def log_level(self) -> str:
        """Logging level name (debug, info, warning, error); ``warn`` is accepted."""
        level = os.getenv("LOG_LEVEL") or self._config.get("reader", {}).get("log_level", "info")
        level = str(level).lower()
        return "warning" if level == "warn" else level

    @property
    def server_host(self) -> str:
        return self._section("server").get("host", "0.0.0.0")

    @property
    def server_port(self) -> int:
        return self._section("server").get("port", 8002)

    @property
    def http_timeout(self) -> float:
        """Per-fetch timeout in seconds applied to every request sent to a site."""
        env_timeout = os.getenv("HUGO_READER_HTTP_TIMEOUT")
        if env_timeout:
            try:
                return float(env_timeout)
            except ValueError:
                print(f"⚠ Ignoring invalid HUGO_READER_HTTP_TIMEOUT={env_timeout!r}")
        return float(self._section("http").get("timeout_seconds", 10))

    @property
    def user_agent(self) -> str:
        return os.getenv("HUGO_READER_USER_AGENT") or self._section("http").get(
            "user_agent", DEFAULT_USER_AGENT
        )

    @property
    def http_max_response_bytes(self) -> int:
        """Largest response body read from a site; bigger bodies fail the fetch."""
        return int(self._section("http").get("max_response_bytes", DEFAULT_MAX_RESPONSE_BYTES))

    @property
    def cache_default_ttl(self) -> float:
        """Default lifetime of a cache entry in seconds (default 5 minutes)."""
        env_ttl = os.getenv("HUGO_READER_CACHE_TTL")
        if env_ttl:
            try:
                return float(env_ttl)
            except ValueError:
                print(f"⚠ Ignoring invalid HUGO_READER_CACHE_TTL={env_ttl!r}")
        return float(self._section("cache").get("default_ttl_seconds", 300))

    @property
    def cache_max_bytes(self) -> int:
        return int(self._section("cache").get("max_bytes", 64 * 1024 * 1024))

    def kind_ttl(self, kind: str) -> float | None:
        """
        Lifetime override for one kind of cached resource.

        Returns None when the kind inherits the cache default.
        """
        ttls = self._section("cache").get("kind_ttl_seconds", {"search": 120, "discovery": 600})
        if not isinstance(ttls, dict) or ttls.get(kind) is None:
            return None
        return float(ttls[kind])

    @property
    def content_default_limit(self) -> int:
        return self._section("content").get("default_limit", 50)

    @property
    def content_max_limit(self) -> int:
        return self._section("content").get("max_limit", 100)

    @property
    def search_default_limit(self) -> int:
        return self._section("search").get("default_limit", 20)

    @property
    def search_max_limit(self) -> int:
        return self._section("search").get("max_limit", 100)

    @property
    def discovery_default_limit(self) -> int:
        return self._section("discovery").get("default_limit", 50)

    @property
    def discovery_max_limit(self) -> int:
        return self._section("discovery").get("max_limit", 200)


# Global config singleton used across the reader
config = Config()
