"""Configuration for the SignalFx emitter"""
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Mapping, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Handler-style keys accepted by HandlerConfig.from_mapping
_MAPPING_KEYS = {
    "authToken": "auth_token",
    "auth_token": "auth_token",
    "endpoint": "endpoint",
    "interval": "interval",
    "max_buffer_size": "max_buffer_size",
    "maxBufferSize": "max_buffer_size",
    "timeout": "timeout",
    "prefix": "prefix",
    "defaultDimensions": "default_dimensions",
    "default_dimensions": "default_dimensions",
    "max_queue_size": "max_queue_size",
    "maxQueueSize": "max_queue_size",
}


class HandlerConfig(BaseSettings):
    """SignalFx handler configuration, read from SIGNALFX_* environment variables"""

    model_config = SettingsConfigDict(env_prefix="SIGNALFX_", case_sensitive=False)

    # Backend settings (missing values disable emission, they are not fatal)
    auth_token: str = Field(default="", description="SignalFx API token sent as X-SF-TOKEN")
    endpoint: str = Field(default="", description="SignalFx datapoint ingest URL")

    # Batching
    interval: int = Field(default=10, ge=1, description="Flush and self-report interval in seconds")
    max_buffer_size: int = Field(default=100, ge=1, description="Datapoints buffered before a forced flush")
    timeout: float = Field(default=2.0, gt=0, description="Connect timeout in seconds")
    max_queue_size: int = Field(default=0, ge=0, description="Inbound queue bound, 0 for unbounded")

    # Datapoint decoration
    prefix: str = Field(default="", description="Prefix prepended to every metric name")
    default_dimensions: Annotated[Dict[str, str], NoDecode] = Field(
        default_factory=dict, description="Dimensions added to every datapoint"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    @field_validator("default_dimensions", mode="before")
    @classmethod
    def parse_default_dimensions(cls, v):
        """Parse dimensions given as 'key=value,key2=value2'"""
        if isinstance(v, str):
            dimensions = {}
            for pair in v.split(","):
                if "=" in pair:
                    key, value = pair.split("=", 1)
                    dimensions[key.strip()] = value.strip()
            return dimensions
        return v or {}

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_file")
    @classmethod
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @classmethod
    def from_mapping(cls, config_map: Mapping[str, Any]) -> "HandlerConfig":
        """Build a config from a handler configuration map, ignoring unknown keys"""
        values = {}
        for key, value in config_map.items():
            field_name = _MAPPING_KEYS.get(key)
            if field_name is not None:
                values[field_name] = value
        return cls(**values)

    def is_configured(self) -> bool:
        """Whether emissions can actually reach the backend"""
        return bool(self.auth_token and self.endpoint)
