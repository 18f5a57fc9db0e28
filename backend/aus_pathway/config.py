import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

DEFAULT_STATE_PATH = Path.home() / ".aus-pathway" / "state.json"


class Settings(BaseSettings):
    persistence_mode: Literal["memory", "file", "database"] = Field(
        "file",
        alias="PATHWAY_PERSISTENCE_MODE",
    )
    state_path: Path = Field(DEFAULT_STATE_PATH, alias="PATHWAY_STATE_PATH")
    database_url: Optional[str] = Field(None, alias="PATHWAY_DATABASE_URL")
    database_echo: bool = Field(False, alias="PATHWAY_DATABASE_ECHO")
    debug_endpoints: bool = Field(False, alias="PATHWAY_DEBUG_ENDPOINTS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True

    def resolved_database_url(self) -> str:
        """Database URL for the SQL store, defaulting to a SQLite file beside the state path."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.state_path.expanduser().with_suffix('.sqlite')}"


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid planner configuration: {exc}") from exc
