from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "VetCare API"
    database_url: str = (
        "postgresql+psycopg2://vetcare:vetcare@db:5432/vetcare"  # pragma: allowlist secret
    )
    timezone: str = "America/Sao_Paulo"
    cors_origins: list[str] = ["http://localhost:5173"]
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60

    login_url: str = "/api/login"
    auth_subject_header: str = "X-Auth-Subject"
    auth_email_header: str = "X-Auth-Email"
    auth_name_header: str = "X-Auth-Name"
    auth_first_name_header: str = "X-Auth-First-Name"
    auth_last_name_header: str = "X-Auth-Last-Name"
    auth_picture_header: str = "X-Auth-Picture"
    admin_master_emails: list[str] = []

    evolution_api_base_url: str = "http://localhost:8080"
    evolution_instance_name: str = ""
    evolution_api_key: str = ""
    whatsapp_mock_mode: bool = False

    document_service_url: str = ""
    document_mock_mode: bool = False
    document_base_url: str = "https://docs.vetcare.local/prescriptions"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
