from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from luckyapi.config import Settings, settings


def create_db_engine(app_settings: Settings) -> Engine:
    """설정으로부터 엔진 생성 (프로세스당 1회)"""
    url = app_settings.database_url

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=app_settings.DEBUG,
        )

    return create_engine(
        url,
        pool_size=app_settings.DB_POOL_SIZE,
        max_overflow=app_settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # 연결 유효성 검사
        pool_recycle=3600,  # 1시간마다 연결 재생성
        echo=app_settings.DEBUG,  # 디버그 모드에서 SQL 로깅
        # 가드 UPDATE의 행 잠금 의미론은 READ COMMITTED 이상이면 충분
        isolation_level="READ COMMITTED",
        connect_args={"options": f"-csearch_path={app_settings.POSTGRES_SCHEMA}"},
    )


engine = create_db_engine(settings)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
