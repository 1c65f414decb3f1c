from dotenv import load_dotenv
load_dotenv()

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("content_server.config")

CONFIG_PATH = Path(os.getenv("CONTENT_CONFIG", "config.json"))

DEFAULT_VALID_ASSETS = [".pk3", ".run", ".sh", ".qvm"]
DEFAULT_MAX_CONCURRENCY = 8


class LoggingSettings(BaseModel):
    """`logging` block of config.json"""
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    log_level: str = Field("info", alias="logLevel")
    log_path: Path = Field(Path("logs"), alias="logPath")
    log_name: str = Field("content-server", alias="logName")
    log_max_size_bytes: int = Field(10 * 1024 * 1024, alias="logMaxSizeBytes", ge=0)
    log_max_files: int = Field(5, alias="logMaxFiles", ge=0)


class ServerSettings(BaseModel):
    """Server configuration loaded from config.json"""
    model_config = ConfigDict(populate_by_name=True)

    root: Path = Path("pk3_assets")
    port: int = Field(9000, ge=0, le=65535)
    # Bind to 0.0.0.0 to force IPv4
    host: str = "0.0.0.0"
    valid_assets: list[str] = Field(default_factory=lambda: list(DEFAULT_VALID_ASSETS), alias="validAssets")
    max_concurrency: int = Field(DEFAULT_MAX_CONCURRENCY, alias="maxConcurrency", ge=1)
    keep_alive_timeout: int = Field(60, alias="keepAliveTimeout", ge=1)
    # Seconds between in-process rebuilds, 0 disables them
    rebuild_interval: float = Field(0, alias="rebuildInterval", ge=0)
    compress_responses: bool = Field(True, alias="compressResponses")
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("valid_assets")
    @classmethod
    def _check_extensions(cls, value: list[str]) -> list[str]:
        for ext in value:
            if not ext.startswith(".") or len(ext) < 2:
                raise ValueError(f"asset extension must look like '.pk3', got {ext!r}")
        return value


def load_settings(path: Path = CONFIG_PATH, **overrides) -> ServerSettings:
    """Load settings from a JSON config file.

    A missing or unreadable file is not fatal, the defaults are used instead.
    A file that parses but holds invalid values raises ValueError.

    Args:
        path (Path): Location of the config file
        **overrides: Values that win over the file (e.g. from the command line)

    Returns:
        ServerSettings: Validated settings
    """
    data = {}
    logger.info("loading config file from %s..", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("failed to load config: %s", e)

    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must hold a JSON object")

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ServerSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid config in {path}: {e}") from e
