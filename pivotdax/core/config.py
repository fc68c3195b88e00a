"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseSettings):
    # ── Audit database ───────────────────────────────────
    database_url: str = "sqlite:///./pivot_audit.db"

    # ── Metadata catalog ─────────────────────────────────
    catalog_path: str | None = None  # defaults to catalog/pivot_catalog.yml

    # ── Query execution ──────────────────────────────────
    executor_backend: str = "mock"  # mock | xmla
    xmla_url: str = "http://localhost/olap/msmdpump.dll"
    xmla_catalog: str = "Adventure Works DW 2019"
    xmla_timeout_s: float = 30.0

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    api_base_url: str = "http://localhost:8000"
    streamlit_port: int = 8501
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
