## Application settings configuration

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "dev"
    database_url: str
    log_level: str = "INFO"

    # Provider keys with special roles in the cost model
    residency_provider_key: str = "umpi"

    # Student defaults when the profile is incomplete
    default_target_hours: float = 12.0
    default_pace_months: int = 12
    metrics_window_weeks: int = 6

    # Upper-level residency requirement used for plan hints
    required_ul_credits: int = 24


settings = Settings()
