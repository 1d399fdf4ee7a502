"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent

# at least 8 characters, one letter and one digit
DEFAULT_PASSWORD_PATTERN = r"^(?=.*[A-Za-z])(?=.*\d).{8,}$"


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_MINUTES: int
    DATABASE_URL: str
    API_PREFIX: str
    API_VERSION: str
    PASSWORD_PATTERN: str
    PASSWORD_HASH_ROUNDS: int
    CORS_ORIGINS: list
    ALLOW_DEV_CORS: bool
    ALLOW_INSECURE_JWT: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'quiz.db'}")
        self.API_PREFIX = "/" + os.getenv("API_PREFIX", "/api").strip("/")
        self.API_VERSION = os.getenv("API_VERSION", "v1").strip("/")
        self.PASSWORD_PATTERN = os.getenv("PASSWORD_PATTERN", DEFAULT_PASSWORD_PATTERN)
        self.PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))
        self.CORS_ORIGINS = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()
        ]
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    @property
    def api_root(self) -> str:
        """Route prefix shared by every resource router, e.g. `/api/v1`."""
        return f"{self.API_PREFIX}/{self.API_VERSION}"

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.PASSWORD_HASH_ROUNDS < 1000:
            raise RuntimeError("PASSWORD_HASH_ROUNDS must be at least 1000")
        if self.JWT_EXPIRE_MINUTES <= 0:
            raise RuntimeError("JWT_EXPIRE_MINUTES must be positive")
