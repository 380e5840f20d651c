from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations like promoting a member

    # Proposals
    duplicate_window_days: int = 7
    similarity_threshold: float = 0.8

    # Monthly selection / final votes
    selection_window_days: int = 30
    selection_limit: int = 10
    final_vote_duration_days: int = 7

    # Applications
    application_review_days: int = 7
    application_quorum: int = 5
    application_majority_pct: float = 60.0
    application_extension_days: int = 3

    # Conditional writes on counters (revision check)
    store_max_attempts: int = 5

    # App
    app_name: str = "community-governance-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
