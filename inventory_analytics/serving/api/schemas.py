"""
API Request and Response Models

Every JSON endpoint answers with the `{"success": ..., "data": ...}` envelope.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from inventory_analytics.database.models import QuantityType


class PaginationInfo(BaseModel):
    """Pagination block of a listing"""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class ReportResponse(BaseModel):
    """Assembled report, serialized with ReportData.to_dict()"""
    success: bool = True
    data: Dict[str, Any]


class ListResponse(BaseModel):
    """One page of records"""
    success: bool = True
    data: List[Dict[str, Any]]
    pagination: PaginationInfo


class ItemResponse(BaseModel):
    """A single record, with an optional confirmation message"""
    success: bool = True
    message: Optional[str] = None
    data: Dict[str, Any]


class MessageResponse(BaseModel):
    """Confirmation without a body"""
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error envelope"""
    success: bool = False
    message: str
    detail: Optional[Any] = None


# =============================================================================
# STOCK REQUESTS
# =============================================================================

class StockCreate(BaseModel):
    """New stock batch"""
    name: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., ge=0)
    quantity_type: QuantityType = QuantityType.NUMBERS
    price: float = Field(..., ge=0)
    expiry_date: Optional[datetime] = None

    @field_validator("name", "company_name")
    @classmethod
    def strip_blank(cls, v: str) -> str:
        """Names are trimmed and may not be blank"""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class StockChanges(BaseModel):
    """
    Partial stock update. Only the fields sent are applied.

    Lowering `quantity` records a sale for the difference; setting
    `is_sold_out` records a sale for the remaining quantity.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    quantity_type: Optional[QuantityType] = None
    price: Optional[float] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    is_sold_out: Optional[bool] = None

    @field_validator("name", "company_name")
    @classmethod
    def strip_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def reject_nulls(self) -> "StockChanges":
        # expiry_date is the only field that may be cleared
        nulls = sorted(
            name for name in self.model_fields_set
            if name != "expiry_date" and getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
