# taskboard/backend/core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # 기본 앱 설정
    env: str = Field("dev", alias="ENV")
    app_version: str = Field("0.1.0", alias="APP_VERSION")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_allow_origins: str = Field(
        "http://localhost:3000,http://localhost:5173",
        alias="CORS_ALLOW_ORIGINS",
    )

    # DB
    database_url: str = Field("", alias="DATABASE_URL")
    db_auto_create: bool = Field(False, alias="DB_AUTO_CREATE")

    # JWT
    jwt_secret_key: str = Field("taskboard-secret-key", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(120, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # 개발용 비밀번호 로그인 (비어 있으면 /auth/token 비활성)
    dev_login_password: str = Field("", alias="DEV_LOGIN_PASSWORD")

    # 변경 이벤트 채널
    task_events_queue_size: int = Field(100, alias="TASK_EVENTS_QUEUE_SIZE")
    ws_heartbeat_sec: float = Field(15.0, alias="WS_HEARTBEAT_SEC")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


settings = Settings()
