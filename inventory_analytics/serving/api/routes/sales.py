"""
Sales API Endpoints

Sale listing and the sales analytics dashboard.
"""

from datetime import date, datetime, time, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from inventory_analytics.analytics.service import AnalyticsService
from inventory_analytics.analytics.sources import SaleFilters
from inventory_analytics.database.repositories import SalesRepository, SortSpec
from inventory_analytics.serving.api.dependencies import (
    get_analytics_service,
    get_sales_repository,
)
from inventory_analytics.serving.api.schemas import ListResponse, ReportResponse

router = APIRouter()


def start_of_day(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min, tzinfo=timezone.utc) if value else None


def end_of_day(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max, tzinfo=timezone.utc) if value else None


@router.get("", response_model=ListResponse)
async def list_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Item or company name"),
    item_name: Optional[str] = None,
    company_name: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_quantity: Optional[float] = Query(None, ge=0),
    max_quantity: Optional[float] = Query(None, ge=0),
    sort_by: Optional[str] = Query(None, description="item_name, quantity_sold, company_name, price or sale_date"),
    sort_order: Literal["asc", "desc"] = "desc",
    repository: SalesRepository = Depends(get_sales_repository),
) -> ListResponse:
    """
    List sales with pagination and filtering.

    Supports filtering by:
    - Item or company name (case-insensitive substring)
    - Date range
    - Quantity range
    """
    filters = SaleFilters(
        search=search,
        item_name=item_name,
        company_name=company_name,
        start_date=start_of_day(start_date),
        end_date=end_of_day(end_date),
        min_quantity=min_quantity,
        max_quantity=max_quantity,
    )
    result = await repository.list_sales(
        filters=filters,
        sort=SortSpec(field=sort_by, descending=sort_order == "desc"),
        page=page,
        limit=limit,
    )

    return ListResponse(
        data=[sale.to_dict() for sale in result.items],
        pagination=result.pagination,
    )


@router.get("/analytics", response_model=ReportResponse)
async def sales_analytics(
    item_name: Optional[str] = Query(None, description="Item name filter (case-insensitive)"),
    company_name: Optional[str] = Query(None, description="Company name filter (case-insensitive)"),
    months: Optional[str] = Query(None, description="Window in months, default 12"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ReportResponse:
    """
    Sales analytics over the last `months` months.

    Includes per-item averages and time to stock-out on top of the period
    report's rankings.
    """
    report = await service.sales_analytics(
        item_name=item_name,
        company_name=company_name,
        months=months,
    )
    return ReportResponse(data=report.to_dict())
