"""
Application configuration loaded from environment variables.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # MongoDB
    mongo_uri: str = "mongodb://mongodb:27017"
    mongo_db_name: str = "forum_db"

    # Redis
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0

    # Sessions
    session_cookie_name: str = "forum_session"
    session_ttl_seconds: int = 24 * 60 * 60
    session_cookie_secure: bool = False  # Set to True behind HTTPS

    # Password hashing
    bcrypt_rounds: int = 12

    # Lockout policy
    lockout_threshold: int = 5
    lockout_duration_minutes: int = 15

    # Password reset
    reset_token_bytes: int = 32
    reset_token_ttl_minutes: int = 60
    public_base_url: str = "http://localhost:8000"

    # Email
    email_backend: str = "console"  # "console" or "smtp"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@forum.local"

    # Chat
    chat_room: str = "main-chat"
    chat_history_limit: int = 50

    # Profiles & comments
    default_avatar: str = "👤"
    default_profile_color: str = "#000000"
    allowed_avatars: list[str] = [
        "😊", "😎", "🤓", "😴", "🤩", "🥳", "🤖", "👻", "🦊", "🐱", "🐶", "🚀", "",
    ]
    comments_page_size: int = 20

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
