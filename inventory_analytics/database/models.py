"""
Database Models

Operational tables of the inventory service:

- Stock: physical stock batches, one row per batch
- Sale: sales recorded when stock is decremented or marked sold out

Sales denormalize item and company names and the unit price at the time of
sale; they are never re-joined to stock for reporting.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from inventory_analytics.analytics.models import SaleRecord, StockRecord


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class QuantityType(str, Enum):
    """Unit in which a stock quantity is counted"""
    NUMBERS = "numbers"
    KG = "kg"
    LITERS = "liters"
    BOXES = "boxes"
    PIECES = "pieces"
    UNITS = "units"


class Stock(Base):
    """
    Stock Table

    One row per stock batch. The same item name may have several rows
    (re-stocked batches).
    """
    __tablename__ = "stock"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    quantity_type: Mapped[QuantityType] = mapped_column(
        SQLEnum(QuantityType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=QuantityType.NUMBERS,
    )
    price: Mapped[float] = mapped_column(Float, nullable=False)

    # Lifecycle
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    date_added: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    is_sold_out: Mapped[bool] = mapped_column(Boolean, default=False)
    date_out_of_stock: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    sales: Mapped[List["Sale"]] = relationship(back_populates="stock")

    __table_args__ = (
        Index("ix_stock_name", "name"),
        Index("ix_stock_company_name", "company_name"),
        Index("ix_stock_is_sold_out", "is_sold_out"),
        Index("ix_stock_expiry_date", "expiry_date"),
    )

    def to_record(self) -> StockRecord:
        return StockRecord(
            id=self.id,
            name=self.name,
            company_name=self.company_name,
            quantity=self.quantity,
            price=self.price,
            is_sold_out=bool(self.is_sold_out),
            expiry_date=self.expiry_date,
            date_out_of_stock=self.date_out_of_stock,
            date_added=self.date_added,
            quantity_type=QuantityType(self.quantity_type).value,
        )


class Sale(Base):
    """
    Sales Table

    Immutable point-in-time facts. Grain: one row per stock decrement.
    """
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stock_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("stock.id", ondelete="SET NULL"), nullable=True
    )

    # Denormalized at creation
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Measures
    quantity_sold: Mapped[float] = mapped_column(Float, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)

    sale_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    stock: Mapped[Optional["Stock"]] = relationship(back_populates="sales")

    __table_args__ = (
        Index("ix_sales_stock_id", "stock_id"),
        Index("ix_sales_sale_date", "sale_date"),
        Index("ix_sales_item_name", "item_name"),
        Index("ix_sales_company_name", "company_name"),
    )

    def to_record(self) -> SaleRecord:
        return SaleRecord(
            id=self.id,
            stock_ref=self.stock_id,
            item_name=self.item_name,
            company_name=self.company_name,
            quantity_sold=self.quantity_sold,
            price=self.price,
            sale_date=self.sale_date,
        )
