from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ISSUER: str
    JWT_AUDIENCE: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    FRONTEND_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Rate limiting (slowapi)
    RATE_LIMIT: str = "100/minute"
    RATE_LIMIT_ENABLED: bool = True

    # Seed data
    SEED_DATA: bool = True
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_USER_NAME: str = "admin"
    ADMIN_PASSWORD: str = "Admin@123"

    @property
    def allow_origins(self) -> List[str]:
        return [origin.strip() for origin in self.FRONTEND_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
