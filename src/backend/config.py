from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    """Centralized application settings.

    This keeps environment-variable handling in one place so other modules can
    depend on strongly-typed attributes instead of calling os.getenv
    directly.
    """

    # Artificial delay (milliseconds) applied to API calls so that clients can
    # exercise their loading states. Zero disables the delay.
    simulated_latency_ms: int = int(os.getenv("SIMULATED_LATENCY_MS", "0"))

    # Seed demo accounts, consultations, documents and health profiles.
    seed_demo_data: bool = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

    # Directory where uploaded patient documents are stored.
    document_upload_dir: Path = Path(os.getenv("DOCUMENT_UPLOAD_DIR", "uploads"))

    # Optional database configuration for SQL-backed repositories.
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    use_sql_repos: bool = os.getenv("USE_SQL_REPOS", "false").lower() == "true"

    # Call simulation timings (seconds) and the probability that a simulated
    # connection attempt fails.
    call_connect_delay_seconds: float = float(os.getenv("CALL_CONNECT_DELAY_SECONDS", "2"))
    call_reset_delay_seconds: float = float(os.getenv("CALL_RESET_DELAY_SECONDS", "2"))
    call_quality_interval_seconds: float = float(os.getenv("CALL_QUALITY_INTERVAL_SECONDS", "5"))
    call_failure_rate: float = float(os.getenv("CALL_FAILURE_RATE", "0.1"))

    # Request size limits (in bytes).
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # CORS configuration: comma-separated origins (e.g. "https://app.example.com,https://admin.example.com").
    # Default is "*" (allow all) which is acceptable for local development but
    # should be tightened in production.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
