#!/usr/bin/env python3
"""
perfdash Configuration Management

Order of precedence (lowest first):
- defaults below
- YAML config file (missing file -> defaults)
- environment: PERFDASH_DATA_SERVICE_URL, PERFDASH_LOG_LEVEL (a .env file
  in the working directory is loaded first)
- command line arguments (applied in main)
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

logger = logging.getLogger("perfdash.server")

ENV_PREFIX = "PERFDASH_"


class DashboardConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    # Remote Data Service
    data_service_url: str = "http://localhost:8080"
    request_timeout: float = 10.0
    verify_tls: bool = True
    # Behavior controls
    debounce_seconds: float = 1.0
    default_date_from: datetime = datetime(2020, 1, 1)
    refetch_after_delete: bool = False   # Re-fetch current range after delete
    light_theme: bool = False

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @field_validator("debounce_seconds")
    @classmethod
    def _check_debounce(cls, value: float) -> float:
        if value < 0:
            raise ValueError("debounce_seconds must not be negative")
        return value


def load_config_from(path: Optional[str]) -> DashboardConfig:
    """Load configuration from a YAML file, then apply environment overrides."""
    data = {}
    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.debug("loaded config from %s: %s", config_path, data)
        else:
            logger.debug("config file not found: %s, using defaults", config_path)

    load_dotenv()
    for field in ("data_service_url", "log_level"):
        env_value = os.getenv(f"{ENV_PREFIX}{field.upper()}")
        if env_value:
            data[field] = env_value

    return DashboardConfig(**data)
