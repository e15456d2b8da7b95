"""
WMS Engine Configuration
Core settings for the inventory allocation and movement engine
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path

COSTING_POLICIES = ("carry_forward", "weighted_average")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Info
    APP_NAME: str = "WMS Inventory Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./wms.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_ECHO: bool = False
    SQLITE_BUSY_TIMEOUT: int = 30  # seconds
    AUTO_CREATE_TABLES: bool = True

    # Transactions
    LOCK_RETRY_ATTEMPTS: int = 3

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "wms.log"
    ERROR_LOG_FILE: str = "error.log"
    LOG_TO_FILE: bool = False

    # Business rules
    COSTING_POLICY: str = "carry_forward"
    ASN_OVERSHIP_TOLERANCE: float = 0.10

    # API Configuration
    API_V1_STR: str = "/api/v1"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only standard logging levels are accepted"""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("COSTING_POLICY")
    @classmethod
    def validate_costing_policy(cls, v: str) -> str:
        policy = v.lower()
        if policy not in COSTING_POLICIES:
            raise ValueError(f"COSTING_POLICY must be one of {', '.join(COSTING_POLICIES)}")
        return policy

    @field_validator("LOCK_RETRY_ATTEMPTS")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("LOCK_RETRY_ATTEMPTS must be at least 1")
        return v


# Global settings instance
settings = Settings()
