"""Application settings and validation."""

import os
from pathlib import Path
from typing import Optional

BASE = Path(__file__).resolve().parent.parent
DEFAULT_JWT_SECRET = "change_me_for_prod"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    ENV: str
    DATABASE_URL: str
    DB_ECHO: bool
    JWT_SECRET: str
    JWT_ALGORITHM: str
    ALLOW_INSECURE_JWT: bool
    COGNITO_REGION: Optional[str]
    COGNITO_USER_POOL_ID: Optional[str]
    COGNITO_CLIENT_ID: Optional[str]
    SYNC_API_KEY: Optional[str]
    GEMINI_API_KEY: Optional[str]
    GEMINI_BASE_URL: str
    GEMINI_MODEL: str
    RECOMMENDATION_RATE_LIMIT_PER_MIN: int
    RECOMMENDATION_RATE_LIMIT_WINDOW_SECONDS: int
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.DB_ECHO = _env_flag("DB_ECHO", "false")
        self.JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ALLOW_INSECURE_JWT = _env_flag("ALLOW_INSECURE_JWT", "false")
        # AWS_REGION is what the hosted deployment already exports
        self.COGNITO_REGION = os.getenv("COGNITO_REGION") or os.getenv("AWS_REGION") or None
        self.COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID") or None
        self.COGNITO_CLIENT_ID = os.getenv("COGNITO_CLIENT_ID") or None
        self.SYNC_API_KEY = os.getenv("SYNC_API_KEY") or None
        self.GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or None
        self.GEMINI_BASE_URL = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
        )
        self.GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash-latest")
        self.RECOMMENDATION_RATE_LIMIT_PER_MIN = int(os.getenv("RECOMMENDATION_RATE_LIMIT_PER_MIN", "20"))
        self.RECOMMENDATION_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RECOMMENDATION_RATE_LIMIT_WINDOW_SECONDS", "60"))
        self.ALLOW_DEV_CORS = _env_flag("ALLOW_DEV_CORS", "true")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    @property
    def cognito_enabled(self) -> bool:
        return bool(self.COGNITO_REGION and self.COGNITO_USER_POOL_ID and self.COGNITO_CLIENT_ID)

    @property
    def cognito_issuer(self) -> str:
        return f"https://cognito-idp.{self.COGNITO_REGION}.amazonaws.com/{self.COGNITO_USER_POOL_ID}"

    @property
    def cognito_jwks_url(self) -> str:
        return f"{self.cognito_issuer}/.well-known/jwks.json"

    def _validate(self):
        if self.RECOMMENDATION_RATE_LIMIT_PER_MIN < 1 or self.RECOMMENDATION_RATE_LIMIT_WINDOW_SECONDS < 1:
            raise RuntimeError("recommendation rate limit values must be positive")
        if self.cognito_enabled or self.ALLOW_INSECURE_JWT:
            return
        if self.ENV != "dev" and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")


settings = Settings()
