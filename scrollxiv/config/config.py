from __future__ import annotations
from functools import lru_cache
from typing import Any, Dict, List, Optional
from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from typing_extensions import Annotated
from pydantic import Field


DEFAULT_CATEGORIES = ["cs.AI", "cs.LG", "cs.CL", "cs.CV", "stat.ML"]


class LLMConfig(BaseModel):
    """Model names and request knobs for the two supported providers."""
    claude_model: Annotated[str, Field(default="anthropic/claude-sonnet-4-20250514")]
    openai_model: Annotated[str, Field(default="gpt-4o")]
    max_tokens: Annotated[int, Field(default=1024)]
    deep_summary_max_tokens: Annotated[int, Field(default=4096)]
    timeout: Annotated[Optional[float], Field(default=None)]


class ArxivConfig(BaseModel):
    api_base: Annotated[str, Field(default="http://export.arxiv.org/api/query")]
    ar5iv_base: Annotated[str, Field(default="https://ar5iv.labs.arxiv.org")]
    user_agent: Annotated[str, Field(default="ScrollXiv/1.0 (Academic paper browser)")]
    timeout: Annotated[Optional[float], Field(default=None)]


class FeedConfig(BaseModel):
    categories: Annotated[List[str], Field(default_factory=lambda: list(DEFAULT_CATEGORIES))]
    page_size: Annotated[int, Field(default=10)]
    fetch_size: Annotated[int, Field(default=20)]
    search_size: Annotated[int, Field(default=20)]


class Settings(BaseSettings):
    # "claude" | "openai"
    ai_provider: Annotated[str, Field(default="claude")]
    anthropic_api_key: Annotated[Optional[str], Field(default=None)]
    openai_api_key: Annotated[Optional[str], Field(default=None)]

    database_url: Annotated[str, Field(default="sqlite:///scrollxiv.db")]

    log_level: Annotated[str, Field(default="INFO")]
    log_dir: Annotated[str, Field(default="logs")]

    llm: LLMConfig = Field(default_factory=LLMConfig)
    arxiv: ArxivConfig = Field(default_factory=ArxivConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """
        Priority, highest first: init kwargs, settings.yaml, .env, process env, secrets.

        The project-local files win over the process environment.
        """
        def yaml_settings() -> Dict[str, Any]:
            path = Path("settings.yaml")
            if not path.exists():
                return {}
            return yaml.safe_load(path.read_text(encoding="utf-8")) or {}

        return (
            init_settings,
            yaml_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide Settings once; collaborators receive it explicitly."""
    return Settings()
