# landplots/config.py
"""
Service configuration.

Reads environment variables (and a local .env file, if present) into a single
settings object so the rest of the code never calls os.getenv directly.
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

MEASUREMENT_MODELS = ("planar", "geodesic")
IMPORT_POLICIES = ("continue", "abort")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    database_url: str = "sqlite:///./landplots.db"
    sql_echo: bool = False
    measurement_model: str = "geodesic"
    check_self_intersection: bool = True
    import_policy: str = "continue"
    db_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        if self.measurement_model not in MEASUREMENT_MODELS:
            raise ValueError(
                f"MEASUREMENT_MODEL must be one of {MEASUREMENT_MODELS}, got {self.measurement_model!r}"
            )
        if self.import_policy not in IMPORT_POLICIES:
            raise ValueError(
                f"IMPORT_POLICY must be one of {IMPORT_POLICIES}, got {self.import_policy!r}"
            )
        if self.db_timeout_seconds <= 0:
            raise ValueError("DB_TIMEOUT_SECONDS must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./landplots.db"),
            sql_echo=_env_bool("SQL_ECHO", False),
            measurement_model=os.getenv("MEASUREMENT_MODEL", "geodesic").strip().lower(),
            check_self_intersection=_env_bool("CHECK_SELF_INTERSECTION", True),
            import_policy=os.getenv("IMPORT_POLICY", "continue").strip().lower(),
            db_timeout_seconds=float(os.getenv("DB_TIMEOUT_SECONDS", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


settings = Settings.from_env()
