import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    database_url: str = "sqlite:///./tasks.db"
    storage_key: str = Field(default="meanstack_tasks", min_length=1)
    read_delay_ms: int = Field(default=50, ge=0)
    write_delay_ms: int = Field(default=100, ge=0)
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "database_url": os.getenv("TASKS_DATABASE_URL"),
            "storage_key": os.getenv("TASKS_STORAGE_KEY"),
            "read_delay_ms": os.getenv("TASKS_READ_DELAY_MS"),
            "write_delay_ms": os.getenv("TASKS_WRITE_DELAY_MS"),
            "log_level": os.getenv("TASKS_LOG_LEVEL"),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
