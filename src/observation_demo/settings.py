"""
observation_demo.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the client and server demos.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    - Strict env-driven configuration (prefix `OBS_`)
    - Defaults safe for local runs
    - One settings object shared by wiring, server and client
    """

    model_config = SettingsConfigDict(env_prefix="OBS_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "observation-demo"
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Observability toggles. Disabled -> the no-op registry is wired in.
    observation_enabled: bool = True
    tracing_console_export: bool = False
    metrics_namespace: str = ""

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 7654
    # Request paths (prefix match) wrapped in an `http.server.requests` observation.
    observed_paths: list[str] = Field(default_factory=lambda: ["/foo", "/user"])
    # Upper bound for the simulated endpoint latency.
    max_latency_ms: int = Field(default=200, ge=0)

    # Client
    server_base_url: str = "http://localhost:7654"
    client_requests: int = Field(default=1, ge=1)
    client_timeout_s: float = 5.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The server and client demos run as separate processes; give them distinct
# `OBS_SERVICE_NAME` values so their log lines and spans can be told apart.
