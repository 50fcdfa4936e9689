"""
Report API Endpoints

Period report as JSON preview and as a downloadable PDF.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from inventory_analytics.analytics.service import AnalyticsService
from inventory_analytics.serving.api.dependencies import get_analytics_service
from inventory_analytics.serving.api.schemas import ErrorResponse, ReportResponse

router = APIRouter()

PERIOD_TYPE_DESCRIPTION = "'weekly' or 'months'; anything else means the last 3 months"


@router.get("/data", response_model=ReportResponse)
async def report_data(
    period_type: Optional[str] = Query(None, description=PERIOD_TYPE_DESCRIPTION),
    period_value: Optional[str] = Query(None, description="Month count for 'months'"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ReportResponse:
    """Report data exactly as it is printed in the PDF."""
    report = await service.report_data(period_type, period_value)
    return ReportResponse(data=report.to_dict())


@router.get(
    "/generate",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def generate_report(
    period_type: Optional[str] = Query(None, description=PERIOD_TYPE_DESCRIPTION),
    period_value: Optional[str] = Query(None, description="Month count for 'months'"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Render the period report as a PDF attachment."""
    pdf, filename = await service.generate_pdf(period_type, period_value)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(pdf)),
        },
    )
