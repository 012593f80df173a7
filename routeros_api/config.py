"""Configuration module for the RouterOS API client.

Implements Pydantic v2 Settings for connection configuration with support for:
- Environment variables (ROUTEROS_API_* prefix)
- YAML/TOML configuration files
- Command-line argument overrides

Configuration priority (later overrides earlier):
1. Built-in defaults
2. Configuration file (YAML/TOML)
3. Environment variables
4. Command-line arguments
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLAIN_API_PORT = 8728
TLS_API_PORT = 8729


class Settings(BaseSettings):
    """Connection configuration with sensible defaults.

    Example:
        # Load from environment only
        settings = Settings()

        # Override specific values
        settings = Settings(host="10.0.0.1", tls=True)
        settings.effective_port  # 8729
    """

    model_config = SettingsConfigDict(
        env_prefix="ROUTEROS_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown fields
    )

    # ========================================
    # Device Connection
    # ========================================

    host: str = Field(default="192.168.88.1", description="RouterOS device hostname or IP")

    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="API port (default: 8728 plain, 8729 TLS)",
    )

    username: str = Field(default="admin", description="RouterOS username")

    password: str = Field(default="", description="RouterOS password")

    timeout_seconds: float = Field(
        default=10.0, gt=0.0, le=300.0, description="Deadline for socket setup and login"
    )

    tls: bool = Field(
        default=False,
        description="Use the api-ssl service. Certificates are not verified "
        "(devices ship self-signed certificates)",
    )

    max_buffer_bytes: int = Field(
        default=16 * 1024 * 1024,
        ge=1024,
        description="Maximum bytes held for one reply in progress (undecoded input "
        "plus its unterminated sentences) before the connection is failed",
    )

    # ========================================
    # Application Settings
    # ========================================

    debug: bool = Field(default=False, description="Log every sentence sent and received")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )

    log_format: Literal["json", "text"] = Field(default="text", description="Log output format")

    # ========================================
    # Validators
    # ========================================

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject empty host names."""
        v = v.strip()
        if not v:
            raise ValueError("host must not be empty")
        return v

    # ========================================
    # Helper Methods
    # ========================================

    @property
    def effective_port(self) -> int:
        """Configured port, or the service default for the transport."""
        if self.port is not None:
            return self.port
        return TLS_API_PORT if self.tls else PLAIN_API_PORT

    def to_dict(self) -> dict:
        """Convert settings to dictionary, masking secrets."""
        data = self.model_dump()
        if data.get("password"):
            data["password"] = "***REDACTED***"
        return data


# ========================================
# Global Settings Instance
# ========================================

_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set global settings instance.

    Args:
        settings: Settings instance to use globally
    """
    global _settings
    _settings = settings


def load_settings_from_file(config_file: Path | str) -> Settings:
    """Load settings from YAML or TOML configuration file.

    Args:
        config_file: Path to configuration file

    Returns:
        Settings instance loaded from file, with ROUTEROS_API_* environment
        variables taking precedence over file values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file format is invalid

    Example:
        settings = load_settings_from_file("config/lab.yaml")
        set_settings(settings)
    """
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in [".yaml", ".yml"]:
        import yaml

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
    elif suffix == ".toml":
        import tomllib

        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .toml")

    if not isinstance(config_data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    # Keys already supplied by the environment keep their env value
    from_env = Settings().model_fields_set
    return Settings(**{key: value for key, value in config_data.items() if key not in from_env})
