from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    PROJECT_NAME: str = "Pitaka API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Accounts, transactions, debts and paluwagan tracking API"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Document store
    STORE_BACKEND: Literal["mongo", "memory"] = "mongo"
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "pitaka"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # JWT (tokens are issued by the identity provider, only verified here)
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Ledger
    DEFAULT_CURRENCY: Literal["PHP", "USD", "EUR"] = "PHP"
    TRANSACTIONS_PAGE_SIZE: int = 15
    ACCOUNT_TRANSACTIONS_PAGE_SIZE: int = 5
    DUE_SOON_DAYS: int = 7

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
