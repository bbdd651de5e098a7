from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "RentDesk"
    app_version: str = "1.0.0"
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://rentdesk:rentdesk@db:5432/rentdesk"

    # Reservations
    # When False a vehicle returned on day D can be picked up again on day D.
    same_day_turnover_is_conflict: bool = True

    # Reports
    report_max_rows: int = 5000

    # Dashboard
    # APK inspections and warranties ending within this many days are flagged.
    expiry_warning_days: int = 60
    upcoming_reservations_limit: int = 5
    recent_expenses_limit: int = 10

    # API client
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 30.0

    # CORS
    backend_cors_origins: list[str] = ["http://localhost", "http://localhost:5173"]

    model_config = {"env_file": ".env", "case_sensitive": False}


settings = Settings()
