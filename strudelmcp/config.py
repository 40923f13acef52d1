"""Configuration for the Strudel MCP resilience layer."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Failure tracking
    error_window_ms: int = 60000  # Trailing window for recent failures
    frequent_failure_threshold: int = 3  # Failures counted as "frequent"
    circuit_breaker_threshold: int = 5  # Recent failures that open a circuit

    # Logging
    log_level: str = "INFO"
    debug: bool = False  # Forces DEBUG logging

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
