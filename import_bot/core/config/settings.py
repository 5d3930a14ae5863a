"""Application settings with Pydantic validation."""

from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...constants import DEFAULT_IMPORT_ORDER, Retries, Timeouts
from ..enums import ImportType
from ..exceptions import ConfigurationError
from ..retry import RetryPolicy

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ImportSettings(BaseSettings):
    """Runtime settings read from the environment and ``.env``."""

    # Target application
    base_url: str = Field(
        default="https://dev.schedule.checkfirst.ai", description="Application base URL"
    )
    # Not USERNAME: Windows always sets it to the OS login name
    username: Optional[str] = Field(
        default=None, validation_alias="IMPORT_USERNAME", description="Sign-in email"
    )
    password: Optional[SecretStr] = Field(default=None, description="Sign-in password")

    # Input
    csv_file_path: str = Field(
        default="./data", description="CSV file or directory holding the import templates"
    )
    import_types: str = Field(
        default=",".join(DEFAULT_IMPORT_ORDER),
        description="Comma-separated import types, processed in this order",
    )

    # Browser
    headless: bool = Field(default=False, description="Run the browser headless")
    screenshot_on_error: bool = Field(default=True, description="Capture screenshots on failure")
    manual_fallback: bool = Field(
        default=True, description="Ask the operator when automated checks are inconclusive"
    )

    # Timeouts (milliseconds)
    browser_timeout: int = Field(default=Timeouts.BROWSER, gt=0)
    navigation_timeout: int = Field(default=Timeouts.NAVIGATION, gt=0)
    file_upload_timeout: int = Field(default=Timeouts.FILE_UPLOAD, gt=0)
    validation_timeout: int = Field(default=Timeouts.VALIDATION, gt=0)
    import_completion_timeout: int = Field(default=Timeouts.IMPORT_COMPLETION, gt=0)
    auth_timeout: int = Field(default=Timeouts.AUTHENTICATION, gt=0)
    auth_check_interval: int = Field(default=2_000, gt=0)

    # Retries
    max_retries: int = Field(default=Retries.MAX_ATTEMPTS, ge=1, le=Retries.MAX_ATTEMPTS_LIMIT)
    retry_delay: int = Field(default=1_000, ge=100, le=10_000, description="Base delay in ms")
    retry_backoff_factor: float = Field(default=Retries.BACKOFF_FACTOR, gt=0, le=10)

    # Diagnostics
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="File log format: text or json")
    debug_capture: bool = Field(default=False, description="Capture DOM snapshots per step")
    record_interactions: bool = Field(default=False, description="Record operator clicks")
    verify_history: bool = Field(default=True, description="Check import history after each import")
    screenshots_dir: str = Field(default="screenshots")
    logs_dir: str = Field(default="logs")
    debug_dir: str = Field(default="debug")
    selectors_file: str = Field(default="config/selectors.yaml")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate URL format."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid BASE_URL format: {v}")
        return v.rstrip("/")

    @field_validator("import_types")
    @classmethod
    def validate_import_types(cls, v: str) -> str:
        """Every listed import type must be known."""
        types = [t.strip().lower() for t in v.split(",") if t.strip()]
        if not types:
            raise ValueError("IMPORT_TYPES must name at least one import type")
        unknown = [t for t in types if t not in ImportType.values()]
        if unknown:
            raise ValueError(
                f"Invalid IMPORT_TYPES: {', '.join(unknown)}. "
                f"Must be one of: {', '.join(ImportType.values())}"
            )
        return ",".join(types)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        level = v.upper()
        if level == "WARN":
            level = "WARNING"
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError(f"Invalid LOG_FORMAT: {v}. Must be text or json")
        return v.lower()

    @property
    def import_type_list(self) -> List[ImportType]:
        """Import types in processing order."""
        return [ImportType(t) for t in self.import_types.split(",")]

    def retry_policy(self) -> RetryPolicy:
        """Default interaction retry policy (seconds)."""
        return RetryPolicy(self.max_retries, self.retry_delay / 1000, self.retry_backoff_factor)

    def credentials(self) -> Tuple[str, str]:
        """
        Get sign-in credentials.

        Raises:
            ConfigurationError: If either credential is missing
        """
        missing = []
        if not self.username:
            missing.append("IMPORT_USERNAME")
        if not self.password or not self.password.get_secret_value():
            missing.append("PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                context={"missing": missing},
            )
        return str(self.username), self.password.get_secret_value()  # type: ignore[union-attr]

    def masked(self) -> dict:
        """Settings summary safe for logs."""
        return {
            "base_url": self.base_url,
            "username": self.username,
            "csv_file_path": self.csv_file_path,
            "import_types": self.import_types,
            "headless": self.headless,
            "max_retries": self.max_retries,
            "retry_delay_ms": self.retry_delay,
        }


def load_settings(**overrides: Any) -> ImportSettings:
    """
    Load settings, converting validation failures into ConfigurationError.

    Args:
        **overrides: Values taking precedence over environment variables

    Raises:
        ConfigurationError: If any value is invalid
    """
    try:
        return ImportSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(f"  - {m}" for m in errors),
            context={"errors": errors},
        ) from e
