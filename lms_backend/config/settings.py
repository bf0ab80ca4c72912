from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///lms_metadata.db"

    # Auth (토큰 발급은 외부 인증 서버 담당, 여기서는 검증만 수행)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Content tree
    request_timeout_seconds: float = 5.0
    course_hash_length: int = 8
    strict_ordering: bool = False  # True면 형제 노드의 order 중복 시 요청 자체를 실패 처리

    # App
    app_name: str = "lms-backend"
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    host: str = ""
    port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="LMS_",
        extra="ignore"
    )


settings = Settings()
