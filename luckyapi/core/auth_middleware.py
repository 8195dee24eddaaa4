from typing import Optional

from fastapi import Header

from luckyapi.core.exceptions import AuthenticationError


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """인증된 사용자 ID 추출

    인증 자체는 업스트림 게이트웨이가 수행하고, 검증된 사용자 ID를
    X-User-Id 헤더로 전달한다. 이 서비스는 토큰을 다시 검증하지 않는다.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Authentication required")
    return x_user_id.strip()
