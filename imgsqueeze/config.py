"""
Runtime configuration read from the environment (and a .env file, if present).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


@dataclass
class Config:
    host: str = '127.0.0.1'
    port: int = 5000
    max_upload_mb: int = 50
    default_quality: int = 80
    server_url: Optional[str] = None
    workers: int = 1
    output_dir: Path = Path('compressed')
    request_timeout: Optional[float] = None
    log_level: str = 'INFO'

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'Config':
        """Load settings from IMGSQUEEZE_* environment variables."""
        load_dotenv(dotenv_path)
        config = cls(
            host=os.getenv('IMGSQUEEZE_HOST', cls.host),
            port=_env_int('IMGSQUEEZE_PORT', cls.port),
            max_upload_mb=_env_int('IMGSQUEEZE_MAX_UPLOAD_MB', cls.max_upload_mb),
            default_quality=_env_int('IMGSQUEEZE_DEFAULT_QUALITY', cls.default_quality),
            server_url=os.getenv('IMGSQUEEZE_SERVER_URL') or None,
            workers=_env_int('IMGSQUEEZE_WORKERS', cls.workers),
            output_dir=Path(os.getenv('IMGSQUEEZE_OUTPUT_DIR', str(cls.output_dir))),
            request_timeout=_env_float('IMGSQUEEZE_REQUEST_TIMEOUT', cls.request_timeout),
            log_level=os.getenv('IMGSQUEEZE_LOG_LEVEL', cls.log_level),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not 10 <= self.default_quality <= 100:
            raise ValueError(f"IMGSQUEEZE_DEFAULT_QUALITY must be between 10 and 100, got {self.default_quality}")
        if self.workers < 1:
            raise ValueError(f"IMGSQUEEZE_WORKERS must be at least 1, got {self.workers}")
        if self.max_upload_mb < 1:
            raise ValueError(f"IMGSQUEEZE_MAX_UPLOAD_MB must be at least 1, got {self.max_upload_mb}")
