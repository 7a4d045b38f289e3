"""Configuration management for broker data validation"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Validation pipeline settings"""

    model_config = SettingsConfigDict(
        env_prefix="BROKER_DATA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in environment
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="json", description="'json' or 'console'")

    # Required rules
    name_min_length: int = Field(default=3, ge=1, description="Minimum trimmed broker name length")
    rating_min: float = Field(default=0.0, description="Lowest accepted rating")
    rating_max: float = Field(default=5.0, description="Highest accepted rating")

    # Format rules
    description_min_length: int = Field(default=50, ge=0)
    description_max_length: int = Field(default=2000, ge=0)

    # Batch reporting
    progress_log_interval: int = Field(default=100, ge=1, description="Log progress every N records")
    report_top_fields: int = Field(default=5, ge=1, description="Fields listed in the operator summary")
    report_output_path: str = Field(default="validated-brokers.json")
    source_path: Optional[str] = Field(default="extracted-brokers-data.json")

    app_name: str = "Broker Data Validation"
    app_version: str = "0.1.0"

    def rating_bounds(self) -> tuple:
        """Return (min, max) rating as floats"""
        return float(self.rating_min), float(self.rating_max)


# Global settings instance
settings = Settings()
