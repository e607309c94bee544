# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # MongoDB
    MONGO_DETAILS: str = "mongodb://mongo:27017"
    DB_NAME: str = "brokerage_db"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGO_SOCKET_TIMEOUT_MS: int = 10000

    # Server
    ENVIRONMENT: str = "development" # development | production | test
    PORT: int = 4000
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Auth
    JWT_SECRET: str = "change-this-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24 * 30
    BCRYPT_ROUNDS: int = 10
    ADMIN_REGISTRATION_KEY: Optional[str] = None # registeradmin is disabled while unset
    PASSWORD_RESET_TOKEN_TTL_MINUTES: int = 10

    # Listing
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100

    # Code generation
    CODE_GENERATION_MAX_RETRIES: int = 5
    CODE_GENERATION_RETRY_BACKOFF_SECONDS: float = 0.05

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    OTEL_CONSOLE_EXPORTERS_ENABLED: bool = False
    SERVICE_NAME_API: str = "brokerage-api"

    # Seeder
    SEED_ADMIN_NAME: str = "Admin User"
    SEED_ADMIN_PHONE: str = "+254700000001"
    SEED_ADMIN_EMAIL: Optional[str] = "admin@example.com"
    SEED_ADMIN_PASSWORD: str = "admin123"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
# Secrets (JWT_SECRET, ADMIN_REGISTRATION_KEY) are never logged.
logger.info(f"Application settings module initialized for environment '{settings.ENVIRONMENT}'.")
