from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://app:devpassword@db:5432/patterndraw"
    REDIS_URL: str = "redis://redis:6379/0"

    JWT_SECRET_KEY: str = ""
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Share links
    PUBLIC_BASE_URL: str = "http://localhost:8000/"
    SHARE_QUERY_PARAM: str = "drawing"
    SHARE_COMPRESSION: bool = True
    SHARE_MAX_DECOMPRESSED_BYTES: int = 1024 * 1024

    PREVIEW_MAX_SIZE: int = 200

    APP_ENV: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
