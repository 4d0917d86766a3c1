"""
Configuration settings for the CBE Receipt Analyzer.
Centralized configuration management for the application.
"""

import os
from pathlib import Path
from typing import Optional

class Config:
    """Application configuration class."""

    # Application Settings
    APP_NAME = "CBE Receipt Analyzer"
    VERSION = "1.0.0"

    # File Upload Settings
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "10"))
    MAX_FILE_SIZE_BYTES: int = MAX_FILE_SIZE_MB * 1024 * 1024
    ALLOWED_FILE_TYPES: list[str] = [".json"]

    # Output Settings
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "./output"))
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "./logs"))

    # Receipt Retrieval Settings
    DOCUMENT_HOST: str = os.getenv("DOCUMENT_HOST", "cbe.com.et")
    FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))

    # Aggregation Settings
    TOP_N: int = int(os.getenv("TOP_N", "25"))
    TAIL_SHARE_THRESHOLD: float = float(os.getenv("TAIL_SHARE_THRESHOLD", "0.02"))

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # API Settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    @classmethod
    def ensure_directories(cls):
        """Ensure required directories exist."""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_output_path(cls, filename: str) -> Path:
        """Get full path for output file."""
        cls.ensure_directories()
        return cls.OUTPUT_DIR / filename

    @classmethod
    def get_log_path(cls, filename: str) -> Path:
        """Get full path for log file."""
        cls.ensure_directories()
        return cls.LOG_DIR / filename

    @classmethod
    def validate_file(cls, filename: str, file_size: int) -> tuple[bool, Optional[str]]:
        """
        Validate an uploaded message export.

        Returns:
            tuple: (is_valid, error_message)
        """
        if not any(filename.lower().endswith(ext) for ext in cls.ALLOWED_FILE_TYPES):
            return False, f"Invalid file type. Allowed types: {', '.join(cls.ALLOWED_FILE_TYPES)}"

        if file_size > cls.MAX_FILE_SIZE_BYTES:
            size_mb = file_size / (1024 * 1024)
            return False, f"File too large ({size_mb:.2f} MB). Maximum: {cls.MAX_FILE_SIZE_MB} MB"

        if file_size == 0:
            return False, "File is empty"

        return True, None

    @classmethod
    def to_dict(cls) -> dict:
        """Convert configuration to dictionary."""
        return {
            "app_name": cls.APP_NAME,
            "version": cls.VERSION,
            "max_file_size_mb": cls.MAX_FILE_SIZE_MB,
            "output_dir": str(cls.OUTPUT_DIR),
            "log_dir": str(cls.LOG_DIR),
            "document_host": cls.DOCUMENT_HOST,
            "fetch_timeout_seconds": cls.FETCH_TIMEOUT_SECONDS,
            "top_n": cls.TOP_N,
            "tail_share_threshold": cls.TAIL_SHARE_THRESHOLD,
            "log_level": cls.LOG_LEVEL,
        }


# Create a singleton instance
config = Config()
