from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


XML_PATH_LOG_ACTIVE = "dev/aoe_modelcache/log_active"
XML_PATH_LOG_FILE = "dev/aoe_modelcache/log_file"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    log_active: bool = Field(default=False, alias="MODELCACHE_LOG_ACTIVE")
    log_file: str = Field(default="modelcache.log", alias="MODELCACHE_LOG_FILE")
    log_dir: str = Field(default="var/log", alias="LOG_DIR")
    project_root: str = Field(default_factory=os.getcwd, alias="PROJECT_ROOT")
    profiler_enabled: bool = Field(default=False, alias="PROFILER_ENABLED")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir)

    @property
    def path_prefix(self) -> str:
        root = self.project_root
        return root if root.endswith(os.sep) else root + os.sep


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class ConfigReader(Protocol):
    """Key-value lookup by dotted path. A plain dict satisfies it."""

    def get(self, path: str) -> str | bool | None: ...


_PATH_FIELDS = {
    XML_PATH_LOG_ACTIVE: "log_active",
    XML_PATH_LOG_FILE: "log_file",
}


class SettingsConfigReader:
    """Resolves config paths against the current settings on every lookup."""

    def get(self, path: str) -> str | bool | None:
        field = _PATH_FIELDS.get(path)
        if field is None:
            return None
        return getattr(get_settings(), field)


def profiler_enabled() -> bool:
    return get_settings().profiler_enabled
