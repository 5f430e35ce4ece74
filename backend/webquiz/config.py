"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    ALLOW_DEV_CORS: bool
    ADMIN_EMAIL: str
    ADMIN_PASSWORD: str
    APP_VERSION: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "").strip()
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
        self.APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and self.ADMIN_EMAIL and len(self.ADMIN_PASSWORD) < 5:
            raise RuntimeError("ADMIN_PASSWORD must be at least 5 characters when ADMIN_EMAIL is set outside dev")


settings = Settings()
