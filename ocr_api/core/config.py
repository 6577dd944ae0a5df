from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RemoteConfig:
    """Connection settings for the Azure Computer Vision OCR endpoint."""

    endpoint: str = ""
    api_key: str = ""
    api_version: str = "v3.2"
    connect_timeout_secs: int = 10
    request_timeout_secs: int = 30
    max_retries: int = 3
    retry_backoff_ms: int = 500
    poll_interval_ms: int = 1000
    poll_timeout_secs: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint.strip()) and bool(self.api_key.strip())


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Azure Computer Vision; leave endpoint/key empty to run in demo mode
    azure_vision_endpoint: str = ""
    azure_vision_key: str = ""
    azure_vision_api_version: str = "v3.2"
    azure_vision_connect_timeout_secs: int = 10
    azure_vision_request_timeout_secs: int = 30
    azure_vision_max_retries: int = 3
    azure_vision_retry_backoff_millis: int = 500
    azure_vision_poll_interval_millis: int = 1000
    azure_vision_poll_timeout_secs: int = 30

    # Demo mode
    ocr_demo_delay_millis: int = 500
    ocr_require_credentials: bool = False

    cors_origins: list[str] = ["*"]

    def remote_config(self) -> RemoteConfig:
        return RemoteConfig(
            endpoint=self.azure_vision_endpoint,
            api_key=self.azure_vision_key,
            api_version=self.azure_vision_api_version,
            connect_timeout_secs=max(1, self.azure_vision_connect_timeout_secs),
            request_timeout_secs=max(1, self.azure_vision_request_timeout_secs),
            max_retries=max(1, self.azure_vision_max_retries),
            retry_backoff_ms=max(1, self.azure_vision_retry_backoff_millis),
            poll_interval_ms=self.azure_vision_poll_interval_millis,
            poll_timeout_secs=max(1, self.azure_vision_poll_timeout_secs),
        )


settings = Settings()
