from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from luckyapi.database.connection import SessionLocal


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """하나의 트랜잭션 경계 - 성공 시 커밋, 예외 시 전체 롤백

    세션 자체가 트랜잭션 핸들이다. 경계를 연 쪽만 커밋하며, 내부에서
    호출되는 리포지토리/서비스는 같은 세션을 받아 flush만 수행한다.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
