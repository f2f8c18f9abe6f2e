"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_REGION_SUFFIXES = ["australia", "sa", "nsw", "vic", "qld", "wa", "tas", "nt", "act"]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Preference normalization and fuzzy location settings."""

    region_suffixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_REGION_SUFFIXES),
        description="Trailing country/region tokens stripped from preferred areas",
    )
    default_min_budget: int = Field(0, ge=0, description="Budget floor when none is stored")
    default_max_budget: int = Field(
        1_000_000, gt=0, description="Budget ceiling when none is stored"
    )

    @field_validator("region_suffixes")
    @classmethod
    def normalize_suffixes(cls, v: List[str]) -> List[str]:
        """Lowercase and strip suffixes, dropping empty entries."""
        return [s.strip().lower() for s in v if s and s.strip()]

    @model_validator(mode="after")
    def validate_budget_defaults(self):
        """Default floor must sit below the default ceiling."""
        if self.default_min_budget >= self.default_max_budget:
            raise ValueError(
                "matching.default_min_budget must be lower than matching.default_max_budget"
            )
        return self


class DispatchConfig(BaseModel):
    """Run concurrency and dispatch retry settings."""

    max_workers: int = Field(
        5, ge=1, le=32, description="Concurrent candidate evaluations (1 = sequential)"
    )
    max_retries: int = Field(
        0, ge=0, le=5, description="Coordinator-level retries for a failed dispatch"
    )
    retry_initial_delay: float = Field(
        1.0, ge=0.0, le=60.0, description="Initial retry delay in seconds"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )


class BackendConfig(BaseModel):
    """Hosted relational backend (REST) settings."""

    request_timeout: float = Field(
        10.0, gt=0, le=120, description="Per-request timeout for backend calls (seconds)"
    )
    user_agent: str = Field(
        "PropertyAlertEngine/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    buyer_role: str = Field("buyer", min_length=1, description="Profile role eligible for alerts")

    @field_validator("user_agent", "buyer_role")
    @classmethod
    def strip_value(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class AlertsConfig(BaseModel):
    """Alert content settings."""

    property_url_template: str = Field(
        "https://pickfirst.com.au/property/{property_id}",
        description="Link to a property page; must contain {property_id}",
    )

    @field_validator("property_url_template")
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        if "{property_id}" not in v:
            raise ValueError("property_url_template must contain '{property_id}'")
        return v.strip()

    def property_url(self, property_id: str) -> str:
        """Build the public URL of a property."""
        return self.property_url_template.format(property_id=property_id)


class EmailConfig(BaseModel):
    """Email delivery settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    smtp_timeout: float = Field(
        15.0, gt=0, le=120, description="SMTP connection timeout in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the alert engine."""

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
