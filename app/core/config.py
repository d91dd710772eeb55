from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "siteops"

    # full SQLAlchemy URL, takes precedence over the DB_* parts (sqlite for tests)
    DB_URL: Optional[str] = None

    SECRET_KEY: str = "change-me"
    SESSION_COOKIE: str = "siteops_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 14
    LOGIN_REDIRECT_URL: str = "/"

    # take the client address from the first X-Forwarded-For hop
    TRUST_FORWARDED_FOR: bool = False

    # device similarity policy
    DEVICE_ALLOW_VERSION_DRIFT: bool = True
    DEVICE_MATCH_DEVICE_TYPE: bool = True
    DEVICE_IPV4_PREFIX: int = 24
    DEVICE_IPV6_PREFIX: int = 64
    DEVICE_MATCH_UNKNOWN_AGENTS: bool = False
    DEVICE_ONLINE_MINUTES: int = 5

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def DATABASE_URL(self) -> str:
        """SQLAlchemy connection URL (MySQL through PyMySQL unless DB_URL is set)"""
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
