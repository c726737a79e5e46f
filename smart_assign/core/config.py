from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Supabase is optional: the pure /optimize endpoint works without it
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    SERVICE_NAME: str = "smart-assign-engine"
    ENGINE_VERSION: str = "1.0.0"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Used when a request does not carry its own cap
    DEFAULT_MAX_ASSIGNMENTS_PER_PERSON: int = 3

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
