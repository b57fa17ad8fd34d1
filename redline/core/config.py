"""
Configuration management for the Redline comparison service.

This module handles all application configuration using Pydantic settings.
Environment variables are loaded from .env file or system environment.
"""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via environment variables.
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_title: str = Field(default="Redline Document Comparison Service", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Debug mode")

    # Celery Configuration
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL"
    )
    celery_task_timeout: int = Field(default=600, description="Task timeout in seconds")
    celery_max_retries: int = Field(default=3, description="Maximum task retries")
    celery_result_expires: int = Field(default=3600, description="Seconds before job results expire")
    celery_queue: str = Field(default="comparisons", description="Queue comparison jobs are routed to")
    celery_max_tasks_per_child: int = Field(
        default=50,
        ge=1,
        description="Comparisons a worker process runs before it is replaced"
    )

    # LLM Configuration (narrative summaries)
    llm_provider: str = Field(
        default="openai",
        description="LLM provider (openai or azure)"
    )
    enable_llm: bool = Field(default=True, description="Request narrative summaries from the LLM")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    azure_openai_endpoint: Optional[str] = Field(default=None, description="Azure OpenAI endpoint")
    azure_openai_api_key: Optional[str] = Field(default=None, description="Azure OpenAI API key")
    azure_openai_api_version: str = Field(
        default="2024-06-01",
        description="Azure OpenAI API version"
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="LLM model (or Azure deployment) to use"
    )
    llm_temperature: float = Field(default=0.1, description="LLM temperature")
    llm_max_tokens: int = Field(default=100, description="LLM max tokens per narrative")
    llm_timeout: float = Field(default=30.0, description="Per-call narrative timeout in seconds")
    narrative_concurrency: int = Field(
        default=5,
        ge=1,
        description="Maximum concurrent narrative requests per comparison"
    )

    # Processing Configuration
    max_file_size_mb: int = Field(default=50, description="Maximum file size in MB")
    min_file_size_bytes: int = Field(default=100, description="Minimum file size in bytes")
    pdf_max_pages: int = Field(default=500, description="Maximum PDF pages to process")
    min_extracted_chars: int = Field(
        default=50,
        description="Below this many extracted characters a PDF is reported as likely scanned"
    )
    temp_dir: str = Field(default="/tmp/redline", description="Temporary directory")
    cleanup_temp_files: bool = Field(default=True, description="Cleanup temporary files")

    # Comparison heuristics
    min_match_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum title+content similarity for two sections to be paired"
    )
    unchanged_threshold: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Content similarity above which a paired section counts as unchanged"
    )
    min_section_chars: int = Field(
        default=50,
        description="Sections shorter than this merge into the preceding section on the same page"
    )
    line_match_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Line similarity at which a replaced line is reported as modified"
    )
    section_matching_strategy: str = Field(
        default="greedy",
        description="Section matching strategy (greedy or optimal)"
    )
    report_max_segments: int = Field(
        default=50,
        description="Maximum diff segments listed in an exported report"
    )

    # Security
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )
    enable_cors: bool = Field(default=True, description="Enable CORS")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Validate LLM provider is supported."""
        allowed = ["openai", "azure"]
        if v.lower() not in allowed:
            raise ValueError(f"LLM provider must be one of {allowed}")
        return v.lower()

    @field_validator("section_matching_strategy")
    @classmethod
    def validate_matching_strategy(cls, v: str) -> str:
        """Validate section matching strategy."""
        allowed = ["greedy", "optimal"]
        if v.lower() not in allowed:
            raise ValueError(f"Section matching strategy must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size from MB to bytes."""
        return self.max_file_size_mb * 1024 * 1024

    def get_llm_api_key(self) -> Optional[str]:
        """Get the appropriate LLM API key based on provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "azure":
            return self.azure_openai_api_key
        return None

    def validate_llm_config(self) -> bool:
        """Validate LLM configuration is complete."""
        if not self.enable_llm:
            return False
        if not self.get_llm_api_key():
            return False
        if self.llm_provider == "azure" and not self.azure_openai_endpoint:
            return False
        if not self.llm_model:
            return False
        return True

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        if self.temp_dir and not os.path.exists(self.temp_dir):
            os.makedirs(self.temp_dir, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    This is the recommended way to access settings throughout the application.

    Returns:
        Settings: Application settings instance
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
