from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    # Database URL
    database_url: str = Field(
        default="postgresql://localhost/hr_admin",
        alias="DATABASE_URL"
    )

    # JWT Settings
    jwt_secret: str = Field(
        alias="SECRET_KEY"
    )
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Superadmin credentials - MUST be set in the environment
    superadmin_email: str = Field(
        default="admin@example.com",
        alias="SUPERADMIN_EMAIL"
    )
    superadmin_password: str = Field(
        alias="SUPERADMIN_PASSWORD"
    )

    # User recorded as the actor of automatic status changes
    system_user_id: int = Field(
        default=1,
        alias="SYSTEM_USER_ID"
    )

    # CORS allowed origins - comma-separated list
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS"
    )

    # Cookie settings
    cookie_secure: bool = Field(
        default=True,
        alias="COOKIE_SECURE"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL"
    )
    log_json: bool = Field(
        default=True,
        alias="LOG_JSON"
    )

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True  # Allow both alias and field name

    def validate_required_secrets(self) -> None:
        """Validate that required secrets are set (no default fallback)"""
        if not self.jwt_secret or self.jwt_secret == "":
            raise ValueError("SECRET_KEY environment variable must be set")
        if not self.superadmin_password or self.superadmin_password == "":
            raise ValueError("SUPERADMIN_PASSWORD environment variable must be set")


settings = Settings()
# Validate required secrets at startup
settings.validate_required_secrets()


@lru_cache()
def get_settings() -> Settings:
    return settings
