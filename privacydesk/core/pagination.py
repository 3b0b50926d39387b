# privacydesk/core/pagination.py
"""
Pagination shared by the list endpoints
"""
from math import ceil
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from fastapi import Query as QueryParam, Request
from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar('T')


class PaginationParams(BaseModel):
    """Base pagination parameters used across all endpoints"""
    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    size: int = Field(20, ge=1, le=100, description="Items per page")

    @computed_field
    @property
    def offset(self) -> int:
        """Calculate offset for database query"""
        return (self.page - 1) * self.size


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic paginated response that all list endpoints use
    """
    model_config = ConfigDict(from_attributes=True)

    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool
    links: Optional[Dict[str, Optional[str]]] = None


class AutoPaginator:
    """Count and slice a select() and wrap the page in a PaginatedResponse"""

    @staticmethod
    async def paginate(
            db: AsyncSession,
            query: Select,
            params: PaginationParams,
            converter: Optional[Callable] = None,
            request: Optional[Request] = None
    ) -> PaginatedResponse:
        """
        Args:
            db: Database session
            query: Filtered and ordered base query
            params: Pagination parameters
            converter: Maps each ORM row to its response schema
            request: FastAPI request for building links
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = await db.scalar(count_query) or 0
        pages = ceil(total / params.size) if total > 0 else 0

        result = await db.execute(query.offset(params.offset).limit(params.size))
        items = result.scalars().unique().all()
        if converter:
            items = [converter(item) for item in items]

        links = None
        if request:
            links = AutoPaginator._build_links(str(request.url).split('?')[0], params, pages)

        return PaginatedResponse(
            items=items,
            total=total,
            page=params.page,
            size=params.size,
            pages=pages,
            has_next=params.page < pages,
            has_prev=params.page > 1,
            links=links
        )

    @staticmethod
    def _build_links(base_url: str, params: PaginationParams, total_pages: int) -> Dict[str, Optional[str]]:
        """Build HATEOAS-style pagination links"""
        links = {
            "self": f"{base_url}?page={params.page}&size={params.size}",
            "first": None,
            "prev": None,
            "next": None,
            "last": None
        }

        if total_pages > 0:
            links["first"] = f"{base_url}?page=1&size={params.size}"
            links["last"] = f"{base_url}?page={total_pages}&size={params.size}"

            if params.page > 1:
                links["prev"] = f"{base_url}?page={params.page - 1}&size={params.size}"

            if params.page < total_pages:
                links["next"] = f"{base_url}?page={params.page + 1}&size={params.size}"

        return links


# FastAPI dependency for pagination
def get_pagination(
        page: int = QueryParam(1, ge=1, description="Page number"),
        size: int = QueryParam(20, ge=1, le=100, description="Items per page")
) -> PaginationParams:
    """Dependency to extract pagination parameters"""
    return PaginationParams(page=page, size=size)
