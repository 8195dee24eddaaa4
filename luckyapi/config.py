from decimal import Decimal
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="luckyapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Lucky Treasure API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "lucky"
    POSTGRES_SCHEMA: str = "public"

    # 설정 시 POSTGRES_* 조합보다 우선 적용
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Business Rules
    DEFAULT_EXCHANGE_RATE: Decimal = Decimal("10")  # system_configs 미설정 시 환율 (코인/통화 1단위)
    GROUP_DEFAULT_MAX_MEMBERS: int = 99999  # 최대 인원 미지정 시 사실상 무제한
    GROUP_MEMBER_PREVIEW_SIZE: int = 8  # 그룹 목록의 멤버 미리보기 수
    ORDER_DETAIL_TRANSACTION_LIMIT: int = 2  # 주문 상세에 포함할 원장 항목 수

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100


settings = Settings()
