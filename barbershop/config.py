# barbershop/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BARBERSHOP_", extra="ignore")

    database_url: str = "sqlite:///./barbershop.db"
    db_timeout_seconds: float = 5.0
    lock_timeout_seconds: float = 5.0

    slot_minutes: int = 15
    booking_horizon_days: int = 30

    secret_key: str = "change-me-later"
    algorithm: str = "HS256"
    session_hours: int = 24

    frontend_url: str = "http://localhost:5500"
    log_level: str = "INFO"
    seed_demo_data: bool = False


settings = Settings()
