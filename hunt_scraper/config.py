"""
Application configuration with environment variable support.
"""
from __future__ import annotations

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when a required setting (such as an API credential) is missing."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    # Enrichment service (OpenAI-compatible endpoint)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash-lite"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    ENRICH_REVIEWS: bool = True
    BUILT_EXTRACTOR: str = "llm"  # "llm" or "regex"
    ENRICH_BATCH_SIZE: int = Field(10, gt=0)

    # Crawl pacing and limits
    REQUEST_DELAY: float = 1.0
    REVIEWS_LIMIT: Optional[int] = None
    THREADS_LIMIT: Optional[int] = None
    THREAD_COMMENTS_LIMIT: Optional[int] = 10
    LAUNCHES_LIMIT: Optional[int] = None
    LAUNCH_COMMENTS_LIMIT: Optional[int] = None

    # Output
    OUTPUT_DIR: str = "output"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def require_gemini_key(self) -> str:
        if not self.GEMINI_API_KEY:
            raise ConfigurationError(
                "No Gemini API key found. Set GEMINI_API_KEY in the environment or .env file."
            )
        return self.GEMINI_API_KEY


def load_settings(**overrides) -> Settings:
    """Build settings from the environment and ``.env``, applying explicit overrides."""
    return Settings(_env_file=".env", _env_file_encoding="utf-8", **overrides)


# Upstream platform
SITE_URL = "https://www.producthunt.com"
GRAPHQL_URL = f"{SITE_URL}/frontend/graphql"
IMAGE_CDN_URL = "https://ph-files.imgix.net"

# HTTP Client Configuration
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"
)
BASE_HEADERS: Dict[str, str] = {
    "accept": "*/*",
    "content-type": "application/json",
    "user-agent": USER_AGENT,
    "origin": SITE_URL,
    "referer": f"{SITE_URL}/products/",
    "x-requested-with": "XMLHttpRequest",
}

# Pagination constants fixed by the upstream API
REVIEWS_PAGE_SIZE = 10
THREAD_COMMENTS_PAGE_SIZE = 10
LAUNCH_FIRST_COMMENTS_PAGE_SIZE = 4
LAUNCH_COMMENTS_PAGE_SIZE = 20
MAX_REPLY_FETCH_ATTEMPTS = 5
