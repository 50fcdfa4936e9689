"""
Stock API Endpoints

Stock management (add, update, delete, lookup), availability listings and
expiry listings. Updates that lower a quantity or mark a batch sold out are
what record sales.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from inventory_analytics.config import Settings, get_settings
from inventory_analytics.database.models import QuantityType
from inventory_analytics.database.repositories import (
    SalesRepository,
    SortSpec,
    StockFilters,
    StockRepository,
)
from inventory_analytics.serving.api.dependencies import get_sales_repository, get_stock_repository
from inventory_analytics.serving.api.schemas import (
    ItemResponse,
    ListResponse,
    MessageResponse,
    StockChanges,
    StockCreate,
)

router = APIRouter()

SORT_DESCRIPTION = "name, quantity, company_name, price, expiry_date, date_added or date_out_of_stock"

STOCK_NOT_FOUND = "Stock item not found"


def stock_filters(
    search: Optional[str] = Query(None, description="Item or company name"),
    company_name: Optional[str] = None,
    quantity_type: Optional[QuantityType] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
) -> StockFilters:
    return StockFilters(
        search=search,
        company_name=company_name,
        quantity_type=quantity_type,
        min_price=min_price,
        max_price=max_price,
    )


def stock_sort(
    sort_by: Optional[str] = Query(None, description=SORT_DESCRIPTION),
    sort_order: Literal["asc", "desc"] = "asc",
) -> SortSpec:
    return SortSpec(field=sort_by, descending=sort_order == "desc")


# =============================================================================
# LISTINGS
# =============================================================================

@router.get("/available", response_model=ListResponse)
async def available_stock(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: SortSpec = Depends(stock_sort),
    filters: StockFilters = Depends(stock_filters),
    repository: StockRepository = Depends(get_stock_repository),
) -> ListResponse:
    """Stock that is not sold out, newest first by default."""
    result = await repository.list_available(filters=filters, sort=sort, page=page, limit=limit)
    return ListResponse(
        data=[stock.to_dict() for stock in result.items],
        pagination=result.pagination,
    )


@router.get("/out-of-stock", response_model=ListResponse)
async def out_of_stock(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: SortSpec = Depends(stock_sort),
    filters: StockFilters = Depends(stock_filters),
    repository: StockRepository = Depends(get_stock_repository),
) -> ListResponse:
    """Sold out stock, newest first by default."""
    result = await repository.list_out_of_stock(filters=filters, sort=sort, page=page, limit=limit)
    return ListResponse(
        data=[stock.to_dict() for stock in result.items],
        pagination=result.pagination,
    )


@router.get("/expiring-soon", response_model=ListResponse)
async def expiring_soon(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: SortSpec = Depends(stock_sort),
    filters: StockFilters = Depends(stock_filters),
    repository: SalesRepository = Depends(get_sales_repository),
    settings: Settings = Depends(get_settings),
) -> ListResponse:
    """Stock expiring within the configured window (3 months by default)."""
    result = await repository.list_expiring_soon(
        filters=filters,
        sort=sort,
        page=page,
        limit=limit,
        window_months=settings.analytics.expiry_window_months,
    )
    return ListResponse(
        data=[stock.to_dict() for stock in result.items],
        pagination=result.pagination,
    )


@router.get("/expired", response_model=ListResponse)
async def expired(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: SortSpec = Depends(stock_sort),
    filters: StockFilters = Depends(stock_filters),
    repository: SalesRepository = Depends(get_sales_repository),
) -> ListResponse:
    """Stock whose expiry date has passed."""
    result = await repository.list_expired(filters=filters, sort=sort, page=page, limit=limit)
    return ListResponse(
        data=[stock.to_dict() for stock in result.items],
        pagination=result.pagination,
    )


# =============================================================================
# MANAGEMENT
# =============================================================================

@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def add_stock(
    body: StockCreate,
    repository: StockRepository = Depends(get_stock_repository),
) -> ItemResponse:
    """Add a stock batch. Zero quantity starts it out sold out."""
    stock = await repository.add_stock(**body.model_dump())
    return ItemResponse(message="Stock item added successfully", data={"stock": stock.to_dict()})


@router.get("/{stock_id}", response_model=ItemResponse)
async def get_stock(
    stock_id: int,
    repository: StockRepository = Depends(get_stock_repository),
) -> ItemResponse:
    stock = await repository.get_stock(stock_id)
    if stock is None:
        raise HTTPException(status_code=404, detail=STOCK_NOT_FOUND)
    return ItemResponse(data={"stock": stock.to_dict()})


@router.put("/{stock_id}", response_model=ItemResponse)
async def update_stock(
    stock_id: int,
    body: StockChanges,
    repository: StockRepository = Depends(get_stock_repository),
) -> ItemResponse:
    """
    Update a stock batch.

    The response carries the recorded sale under `sale` (null when the update
    sold nothing).
    """
    try:
        result = await repository.update_stock(stock_id, body.changes())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        raise HTTPException(status_code=404, detail=STOCK_NOT_FOUND)

    return ItemResponse(
        message="Stock item updated successfully",
        data={
            "stock": result.stock.to_dict(),
            "sale": result.sale.to_dict() if result.sale is not None else None,
        },
    )


@router.delete("/{stock_id}", response_model=MessageResponse)
async def delete_stock(
    stock_id: int,
    repository: StockRepository = Depends(get_stock_repository),
) -> MessageResponse:
    """Delete a stock batch. Sales already recorded against it are kept."""
    if not await repository.delete_stock(stock_id):
        raise HTTPException(status_code=404, detail=STOCK_NOT_FOUND)
    return MessageResponse(message="Stock item deleted successfully")
