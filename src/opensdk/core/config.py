"""Client configuration.

`ClientConfig` is the value threaded into every resource client. The process
environment is read only by `Settings`, at the edge (CLI, app startup):

    config = Settings().to_client_config()
"""

from __future__ import annotations

from typing import Callable, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from opensdk.runtime.retry import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_RETRIES, RetryOptions
from opensdk.runtime.url import DEFAULT_OPENAPI_HOST


class ClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    openapi_host: str = DEFAULT_OPENAPI_HOST
    override_host: bool = False
    default_headers: dict[str, str] = Field(default_factory=dict)
    retry: RetryOptions = Field(default_factory=RetryOptions)
    idempotency_timeout_sec: Optional[float] = None
    # idempotency key source when neither caller nor payload provides one
    uuid_fn: Optional[Callable[[], str]] = None
    # require list rows to echo the id/number being verified
    strict_list_verification: bool = False


class Settings(BaseSettings):
    """Environment-backed settings (OPENSDK_* plus the legacy OPENAPI_HOST)."""

    model_config = SettingsConfigDict(
        env_prefix="OPENSDK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openapi_host: str = Field(
        default=DEFAULT_OPENAPI_HOST,
        validation_alias=AliasChoices("OPENSDK_OPENAPI_HOST", "OPENAPI_HOST"),
    )
    override_host: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    idempotency_timeout_sec: Optional[float] = None

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            openapi_host=self.openapi_host,
            override_host=self.override_host,
            retry=RetryOptions(max_retries=self.max_retries, base_delay_ms=self.base_delay_ms),
            idempotency_timeout_sec=self.idempotency_timeout_sec,
        )
