"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Security Secrets ──────────────────────────────────────────────────
    encryption_key: str = ""            # AES-256-GCM key: 32-char string or base64 of 32 bytes

    # ── Verification proxies ─────────────────────────────────────────────
    resdb_proxy_url: str = "https://crow.resilientdb.com"
    mongodb_proxy_url: str = ""         # POST endpoint that checks a MongoDB collection
    probe_timeout_seconds: float = 12.0

    # ── Config storage ───────────────────────────────────────────────────
    config_store_path: str = ""         # JSON file for saved connector configs; empty keeps them in memory

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


config = Settings()
