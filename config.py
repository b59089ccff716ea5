from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    sqlalchemy_database_url: str = "sqlite:///./clinic.db"
    lock_timeout_ms: int = 5000
    booking_max_attempts: int = 3
    booking_retry_backoff_seconds: float = 0.05
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "forbid"
    }

settings = Settings()
