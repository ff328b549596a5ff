"""
PixelClip Configuration
=======================

Settings for the PixelClip service, read once at startup.

Resolution order (later wins):
    defaults on the models below
    -> YAML file (PIXELCLIP_CONFIG, else ./config.yaml or the repo root)
    -> environment variables

Environment Variable Mapping:
    PIXELCLIP_CONFIG             -> path of the YAML file
    PIXELCLIP_PROCESSING_BACKEND -> processing.backend
    PIXELCLIP_BASE_DELAY         -> processing.base_delay_seconds
    PIXELCLIP_PER_LEVEL_DELAY    -> processing.per_level_delay_seconds
    PIXELCLIP_API_KEY            -> processing.api_key
    GEMINI_API_KEY               -> processing.api_key (fallback)
    PIXELCLIP_MAX_UPLOAD_BYTES   -> session.max_upload_bytes
    PIXELCLIP_MAX_SESSIONS       -> session.max_sessions
    PIXELCLIP_PORT               -> server.port
    PIXELCLIP_LOG_LEVEL          -> logging.level
    PORT                         -> server.port (Cloud Run)

Example:
    from pixelclip.config import load_config

    settings = load_config()
    print(settings.processing.backend)
    print(settings.session.max_upload_bytes)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="pixelclip", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class ProcessingConfig(BaseModel):
    """Processing backend configuration."""

    backend: str = Field(
        default="simulated",
        description="Processing backend: 'simulated'",
    )
    base_delay_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Fixed part of the simulated processing latency",
    )
    per_level_delay_seconds: float = Field(
        default=0.05,
        ge=0,
        description="Simulated latency added per pixelation level unit",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Opaque credential handed to a real backend (never parsed)",
    )


class SessionConfig(BaseModel):
    """Upload session configuration."""

    max_upload_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Largest accepted video upload in bytes",
    )
    max_sessions: int = Field(
        default=100,
        ge=1,
        description="Maximum number of concurrently open sessions",
    )
    filename_stem_length: int = Field(
        default=15,
        ge=1,
        description="Prefix length kept from the original filename stem",
    )
    default_pixelation_level: int = Field(
        default=10,
        ge=2,
        le=50,
        description="Level used when a process request omits it",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Root settings object for PixelClip.

    Built by load_config; tests construct it directly.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def _find_config_file() -> Optional[Path]:
    """First existing config file: PIXELCLIP_CONFIG, then the working dir, then the repo root."""
    if env_path := os.environ.get("PIXELCLIP_CONFIG"):
        return Path(env_path)

    repo_root = Path(__file__).resolve().parents[2]
    for candidate in (Path("config.yaml"), Path("config.yml"), repo_root / "config.yaml"):
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from the YAML file and the environment.

    Args:
        config_path: Explicit YAML path; located with _find_config_file when None

    Returns:
        Validated Settings
    """
    path = Path(config_path) if config_path else _find_config_file()

    file_data: dict = {}
    if path is not None and path.is_file():
        logger.info(f"Reading settings from {path}")
        with path.open("r") as f:
            file_data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file {path} not found, using defaults and environment")

    _apply_env_overrides(file_data)
    return Settings.model_validate(file_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Processing settings
    if env_backend := os.environ.get("PIXELCLIP_PROCESSING_BACKEND"):
        config_data.setdefault("processing", {})["backend"] = env_backend
    if env_base := os.environ.get("PIXELCLIP_BASE_DELAY"):
        config_data.setdefault("processing", {})["base_delay_seconds"] = float(env_base)
    if env_step := os.environ.get("PIXELCLIP_PER_LEVEL_DELAY"):
        config_data.setdefault("processing", {})["per_level_delay_seconds"] = float(env_step)

    # Credentials are passed through untouched
    if env_key := os.environ.get("PIXELCLIP_API_KEY"):
        config_data.setdefault("processing", {})["api_key"] = env_key
    elif env_key := os.environ.get("GEMINI_API_KEY"):
        config_data.setdefault("processing", {})["api_key"] = env_key

    # Session settings
    if env_max := os.environ.get("PIXELCLIP_MAX_UPLOAD_BYTES"):
        config_data.setdefault("session", {})["max_upload_bytes"] = int(env_max)
    if env_sessions := os.environ.get("PIXELCLIP_MAX_SESSIONS"):
        config_data.setdefault("session", {})["max_sessions"] = int(env_sessions)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("PIXELCLIP_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("PIXELCLIP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
