# taskboard/client/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TASKBOARD_", env_file=".env", extra="ignore")

    api_base_url: str = "http://localhost:8000"
    api_timeout: float = 10.0

    # 알림 피드 폴링/파생 규칙
    notification_poll_seconds: float = 30.0
    notification_limit: int = 10
    due_soon_hours: int = 24


client_settings = ClientSettings()
