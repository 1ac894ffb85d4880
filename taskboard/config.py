from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "info"

    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "dev-secret-change-me"
    jwt_refresh_secret: str = "dev-refresh-secret-change-me"
    jwt_issuer: str = "taskboard-api"
    jwt_audience: str = "taskboard-api"
    jwt_expires_minutes: int = 15
    jwt_refresh_expires_minutes: int = 60 * 24 * 7

    # refresh tokens are stored as hmac digests
    token_pepper: str = "dev-pepper-change-me"
    bcrypt_rounds: int = 12
    cookie_secure: bool = False

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_register_per_min: int = 10
    rate_limit_login_per_min: int = 20

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

settings = Settings()
