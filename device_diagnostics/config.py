from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Failure policy: how many failed attempts a step tolerates before
    # a retry is downgraded to an abort
    MAX_RETRY_ATTEMPTS: int = 3

    # Storage Configuration
    # "memory" serves the bundled sample problems, "database" uses DATABASE_URL
    STORAGE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: str = "sqlite:///./diagnostics.db"

    # Seeds weighted branch selection; unset means system randomness
    RANDOM_SEED: Optional[int] = None

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
