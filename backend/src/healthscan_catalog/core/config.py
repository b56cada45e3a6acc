from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ROOT = Path(__file__).resolve().parents[3]
ENV_PATH = BACKEND_ROOT / ".env"

# Load environment variables as early as possible so Settings picks them up.
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "HealthScan Catalog API"
    app_version: str = "0.1.0"
    docs_url: str = "/docs"
    database_url: str = f"sqlite:///{(BACKEND_ROOT / 'healthscan_catalog.db').as_posix()}"
    database_echo: bool = False
    log_level: str = "INFO"

    # Quality engine
    completeness_threshold: int = 90
    batch_size: int = 50
    batch_delay_seconds: float = 0.1
    lock_ttl_seconds: int = 900

    # Enrichment
    image_base_url: str = "https://images.healthscan.live/catalog"
    enrichment_llm_enabled: bool = False
    ollama_endpoint: str = "http://127.0.0.1:11434"
    ollama_model: str = "llama3.1"
    ollama_timeout: int = 100

    # Admin access
    admin_emails: List[str] = []
    admin_domains: List[str] = ["healthscan.live", "healthscan.com"]
    admin_tokens: Dict[str, str] = {}


@lru_cache
def get_settings() -> Settings:
    return Settings()
