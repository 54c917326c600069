from decimal import Decimal
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    PGHOST: str = "localhost"
    PGPORT: int = 5432
    PGDATABASE: str = "bd_ticketpro"
    PGUSER: str = "postgres"
    PGPASSWORD: str = "postgres"
    PGSSLMODE: str = "prefer"
    SQL_ECHO: bool = False

    # Security
    SECRET_KEY: str = "bd_ticket_pro_secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12

    # Application
    PROJECT_NAME: str = "BD TicketPro"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]
    SEED_DEFAULT_USERS: bool = True

    # Inventory
    DEFAULT_MARKUP_PERCENTAGE: Decimal = Decimal("10")
    LOCK_DURATION_MINUTES: int = 15
    LOCK_SWEEP_INTERVAL_SECONDS: float = 60.0
    LOCK_SWEEPER_ENABLED: bool = True
    BOOKING_EXPIRY_HOURS: int = 24

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.PGUSER}:{self.PGPASSWORD}@{self.PGHOST}:{self.PGPORT}"
            f"/{self.PGDATABASE}?sslmode={self.PGSSLMODE}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
