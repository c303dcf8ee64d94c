from typing import TypeVar, Generic, List, Sequence

from pydantic import BaseModel, Field, model_validator

T = TypeVar('T')


class PaginationInfo(BaseModel):
    """分页信息"""

    page: int = Field(description="当前页码", ge=1)
    page_size: int = Field(description="每页大小", ge=1, le=1000)
    total: int = Field(description="总记录数", ge=0)
    total_pages: int = Field(default=0, description="总页数", ge=0)
    has_next: bool = Field(default=False, description="是否有下一页")
    has_prev: bool = Field(default=False, description="是否有上一页")

    @model_validator(mode='after')
    def calculate_fields(self) -> 'PaginationInfo':
        self.total_pages = (self.total + self.page_size - 1) // self.page_size
        self.has_next = self.page < self.total_pages
        self.has_prev = self.page > 1
        return self


class PaginatedData(BaseModel, Generic[T]):
    """分页数据"""

    items: List[T] = Field(description="数据列表")
    pagination: PaginationInfo = Field(description="分页信息")


def paginate(items: Sequence[T], page: int, page_size: int) -> PaginatedData[T]:
    """对内存中的列表切片分页"""
    start = (page - 1) * page_size
    return PaginatedData(
        items=list(items[start:start + page_size]),
        pagination=PaginationInfo(page=page, page_size=page_size, total=len(items)),
    )
