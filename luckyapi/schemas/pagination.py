from pydantic import BaseModel, Field
from typing import Generic, TypeVar, List

T = TypeVar('T')


class PageParams(BaseModel):
    """페이지 번호 기반 페이지네이션 파라미터"""
    page: int = Field(1, ge=1, description="페이지 번호 (1부터)")
    page_size: int = Field(20, ge=1, description="페이지당 항목 수")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """목록 응답 공통 형태"""
    items: List[T]
    total: int
    page: int
    page_size: int
    has_next: bool


def clamp_page(page: int, page_size: int, max_page_size: int) -> PageParams:
    """범위를 벗어난 값은 허용 범위로 보정"""
    return PageParams(
        page=max(1, page),
        page_size=min(max_page_size, max(1, page_size)),
    )


# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    ORDERS = {"min": 1, "max": 100, "default": 20}
    WALLET_TRANSACTIONS = {"min": 1, "max": 100, "default": 20}
    GROUPS = {"min": 1, "max": 100, "default": 20}
    GROUP_MEMBERS = {"min": 1, "max": 100, "default": 20}
