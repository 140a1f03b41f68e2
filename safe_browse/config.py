"""Client configuration.

A ClientConfig is built once per client and never mutated afterwards.
Extra query parameters are kept as an immutable mapping so that two clients
never share mutable defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_ENDPOINT = "https://sb-ssl.google.com/safebrowsing/api/lookup"
DEFAULT_APP_VERSION = "1.0.0"  # major.minor.patch
DEFAULT_PROTOCOL_VERSION = "3.0"  # major.minor

# Query-string keys owned by the client itself.
RESERVED_PARAMS = frozenset({"client", "apikey", "appver", "pver", "url"})

ENV_FILES = (Path(".env"), Path.home() / ".env", Path.home() / ".safebrowse.env")

_TRUTHY = {"1", "true", "yes", "on"}


def load_env_files() -> Optional[Path]:
    """Load the first .env file found (current dir, then home dir)."""
    for env_path in ENV_FILES:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        parsed = urlparse(value)
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        return False


def _frozen(params: Optional[Mapping[str, Any]]) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (params or {}).items()})


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    client_name: str
    endpoint: str = DEFAULT_ENDPOINT
    app_version: str = DEFAULT_APP_VERSION
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    debug: bool = False
    extra_params: Mapping[str, str] = field(default_factory=lambda: _frozen(None))

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("An API key is required to use the lookup API")
        if not self.client_name:
            raise ConfigurationError(
                "Client name is required, it identifies your application to the lookup API"
            )
        if not _is_http_url(self.endpoint):
            raise ConfigurationError(f"Endpoint must be an http(s) URL with a host: {self.endpoint!r}")

        clashes = sorted(RESERVED_PARAMS.intersection(self.extra_params))
        if clashes:
            raise ConfigurationError(f"Reserved query parameters cannot be overridden: {', '.join(clashes)}")

        if not isinstance(self.extra_params, MappingProxyType):
            object.__setattr__(self, "extra_params", _frozen(self.extra_params))

    @classmethod
    def create(
        cls,
        api_key: Optional[str],
        client_name: Optional[str],
        *,
        endpoint: Optional[str] = None,
        app_version: Optional[str] = None,
        protocol_version: Optional[str] = None,
        debug: bool = False,
        **params: Any,
    ) -> "ClientConfig":
        """Merge caller options over the defaults.

        Unknown keyword arguments become extra query-string parameters.
        """
        return cls(
            api_key=api_key or "",
            client_name=client_name or "",
            endpoint=endpoint or DEFAULT_ENDPOINT,
            app_version=app_version or DEFAULT_APP_VERSION,
            protocol_version=protocol_version or DEFAULT_PROTOCOL_VERSION,
            debug=bool(debug),
            extra_params=_frozen(params),
        )

    @classmethod
    def from_env(cls, *, load_dotenv_files: bool = True, **overrides: Any) -> "ClientConfig":
        """Build a config from SAFE_BROWSE_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        if load_dotenv_files:
            load_env_files()

        debug_env = os.getenv("SAFE_BROWSE_DEBUG", "")
        values: dict[str, Any] = {
            "api_key": os.getenv("SAFE_BROWSE_API_KEY"),
            "client_name": os.getenv("SAFE_BROWSE_CLIENT"),
            "endpoint": os.getenv("SAFE_BROWSE_ENDPOINT"),
            "app_version": os.getenv("SAFE_BROWSE_APP_VERSION"),
            "protocol_version": os.getenv("SAFE_BROWSE_PROTOCOL_VERSION"),
            "debug": debug_env.strip().lower() in _TRUTHY,
        }
        for k, v in overrides.items():
            if v is not None:
                values[k] = v

        api_key = values.pop("api_key")
        client_name = values.pop("client_name")
        return cls.create(api_key, client_name, **values)

    def query_params(self) -> dict[str, str]:
        """Query-string parameters shared by single and batch requests."""
        params = {
            "client": self.client_name,
            "apikey": self.api_key,
            "appver": self.app_version,
            "pver": self.protocol_version,
        }
        params.update(self.extra_params)
        return params
