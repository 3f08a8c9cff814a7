"""Test Resource Routes — paginated CRUD over the "Test" table.

Invariants:
    - page >= 1, 1 <= limit <= 100 (violations → 400 VALIDATION_ERROR)
    - Unknown ids → 404 RESOURCE_NOT_FOUND
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import total_pages
from app.infrastructure.database import get_db
from app.schemas.common import ApiResponse, PaginatedResponse, Pagination
from app.schemas.test_item import TestItemCreate, TestItemRead, TestItemUpdate
from app.services import test_items

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tests", tags=["tests"])


@router.get(
    "",
    response_model=PaginatedResponse[TestItemRead],
    summary="List test items",
)
async def list_test_items(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    items, total = await test_items.list_items(db, page, limit)
    return PaginatedResponse[TestItemRead](
        success=True,
        data=[TestItemRead.model_validate(i) for i in items],
        pagination=Pagination(
            page=page, limit=limit, total=total,
            total_pages=total_pages(total, limit),
        ),
    )


@router.post(
    "",
    response_model=ApiResponse[TestItemRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create test item",
)
async def create_test_item(
    body: TestItemCreate, db: AsyncSession = Depends(get_db),
):
    item = await test_items.create_item(db, body.name)
    logger.info(f"Test item {item.id} created")
    return ApiResponse[TestItemRead](
        success=True, data=TestItemRead.model_validate(item),
    )


@router.get(
    "/{item_id}",
    response_model=ApiResponse[TestItemRead],
    response_model_exclude_none=True,
    summary="Get test item",
)
async def get_test_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await test_items.get_item_or_404(db, item_id)
    return ApiResponse[TestItemRead](
        success=True, data=TestItemRead.model_validate(item),
    )


@router.patch(
    "/{item_id}",
    response_model=ApiResponse[TestItemRead],
    response_model_exclude_none=True,
    summary="Rename test item",
)
async def update_test_item(
    item_id: int, body: TestItemUpdate, db: AsyncSession = Depends(get_db),
):
    item = await test_items.update_item(db, item_id, body.name)
    return ApiResponse[TestItemRead](
        success=True, data=TestItemRead.model_validate(item),
    )


@router.delete(
    "/{item_id}",
    response_model=ApiResponse[dict],
    response_model_exclude_none=True,
    summary="Delete test item",
)
async def delete_test_item(item_id: int, db: AsyncSession = Depends(get_db)):
    await test_items.delete_item(db, item_id)
    logger.info(f"Test item {item_id} deleted")
    return ApiResponse[dict](success=True)
