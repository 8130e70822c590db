from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "tutoring-back-office"
    LOG_LEVEL: str = "INFO"

    ADMIN_JWT_TTL_MINUTES: int = 240
    ADMIN_JWT_SECRET: str = "change_me_admin"

    CORS_ORIGINS: str = "http://localhost:3000"

    DATABASE_URL: str = "sqlite+pysqlite:///./back_office.db"

    # Admin table list/export limits shared by every resource contract.
    REPORT_DEFAULT_PAGE_SIZE: int = 25
    REPORT_MAX_PAGE_SIZE: int = 100
    REPORT_MAX_EXPORT_ROWS: int = 5000
    REPORT_MAX_SEARCH_LENGTH: int = 120
    REPORT_STATEMENT_TIMEOUT_MS: int = 30000

    # Compose/infra vars that may exist in shared .env
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "back_office"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
