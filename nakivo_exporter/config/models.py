"""Pydantic configuration models for the exporter."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import re


class WebConfig(BaseModel):
    """HTTP listener configuration."""
    listen_address: str = ":9777"
    telemetry_path: str = "/metrics"

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v: str) -> str:
        """Validate [host]:port format."""
        host, sep, port = v.rpartition(':')
        if not sep or not port.isdigit():
            raise ValueError('Listen address must have the form [host]:port')
        if not 0 < int(port) < 65536:
            raise ValueError('Listen port must be between 1 and 65535')
        return v

    @field_validator('telemetry_path')
    @classmethod
    def validate_telemetry_path(cls, v: str) -> str:
        """Telemetry path must be absolute and must not shadow the landing page."""
        if not v.startswith('/'):
            raise ValueError('Telemetry path must start with /')
        if v == '/':
            raise ValueError('Telemetry path must not be /')
        return v

    @property
    def host(self) -> str:
        host = self.listen_address.rpartition(':')[0]
        return host.strip('[]') or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen_address.rpartition(':')[2])


class NakivoConfig(BaseModel):
    """NAKIVO appliance connection configuration."""
    address: str = "https://localhost:4443/c/router"
    port: int = Field(default=4443, ge=1, le=65535)
    user: str = "admin"
    password: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0)
    insecure_skip_verify: bool = True

    @field_validator('address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Address must start with http:// or https://')
        return v


class CollectorsConfig(BaseModel):
    """Which collectors to register and how to name their metrics."""
    namespace: str = "nakivo"
    job_id: Optional[int] = Field(default=9, ge=0)
    job_group: bool = True

    @field_validator('namespace')
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Namespace must be a valid Prometheus metric name prefix."""
        if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', v):
            raise ValueError('Invalid metric namespace')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "json"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError('Log level must be one of DEBUG, INFO, WARNING, ERROR')
        return v

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError('Log format must be json or text')
        return v


class ExporterConfig(BaseModel):
    """Root configuration model for the exporter."""
    web: WebConfig = Field(default_factory=WebConfig)
    nakivo: NakivoConfig = Field(default_factory=NakivoConfig)
    collectors: CollectorsConfig = Field(default_factory=CollectorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
