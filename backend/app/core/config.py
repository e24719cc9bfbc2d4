from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Database – SQLite für lokale Entwicklung
    DATABASE_URL: str = "sqlite+aiosqlite:///./timeclock.db"

    # Redis (optional – Celery und verteilte Locks deaktiviert wenn nicht gesetzt)
    REDIS_URL: str = "redis://localhost:6379/0"
    USE_CELERY: bool = False
    # Mehrere API-Worker: Clock-Aktionen pro Mitarbeiter über Redis serialisieren
    USE_REDIS_LOCKS: bool = False
    LOCK_TIMEOUT_SECONDS: int = 10

    # Security
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Zeiterfassung
    # Anzeige-Zeitzone: bestimmt Tagesgrenzen für Tages-/Wochenberichte
    TIMEZONE: str = "Europe/Berlin"
    # Offene Einträge älter als dieser Horizont gelten als vergessen
    STALE_SESSION_HORIZON_HOURS: int = 16

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
