from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SalesRecord(BaseModel):
    """One sales transaction, serialized under its human-readable labels."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, coerce_numbers_to_str=True)

    transaction_id: str = Field(alias="Transaction ID", description="Unique transaction identifier")
    sale_date: Optional[date] = Field(default=None, alias="Date", description="Transaction date")
    customer_id: Optional[str] = Field(default=None, alias="Customer ID", description="Customer identifier")
    customer_name: Optional[str] = Field(default=None, alias="Customer Name", description="Customer full name")
    phone_number: Optional[str] = Field(default=None, alias="Phone Number", description="Customer phone number")
    gender: Optional[str] = Field(default=None, alias="Gender", description="Customer gender")
    age: Optional[int] = Field(default=None, alias="Age", description="Customer age in years")
    customer_region: Optional[str] = Field(default=None, alias="Customer Region", description="Customer region")
    customer_type: Optional[str] = Field(default=None, alias="Customer Type", description="Customer type")
    product_id: Optional[str] = Field(default=None, alias="Product ID", description="Product identifier")
    product_name: Optional[str] = Field(default=None, alias="Product Name", description="Product name")
    brand: Optional[str] = Field(default=None, alias="Brand", description="Product brand")
    product_category: Optional[str] = Field(default=None, alias="Product Category", description="Product category")
    tags: Optional[str] = Field(default=None, alias="Tags", description="Comma-delimited product tags")
    quantity: Optional[int] = Field(default=None, alias="Quantity", description="Units sold")
    price_per_unit: Optional[float] = Field(default=None, alias="Price per Unit", description="Unit price")
    discount_percentage: Optional[float] = Field(default=None, alias="Discount Percentage", description="Discount applied, 0-100")
    total_amount: Optional[float] = Field(default=None, alias="Total Amount", description="quantity * price before discount")
    final_amount: Optional[float] = Field(default=None, alias="Final Amount", description="Total after discount")
    payment_method: Optional[str] = Field(default=None, alias="Payment Method", description="Payment method used")
    order_status: Optional[str] = Field(default=None, alias="Order Status", description="Order status")
    delivery_type: Optional[str] = Field(default=None, alias="Delivery Type", description="Delivery type")
    store_id: Optional[str] = Field(default=None, alias="Store ID", description="Store identifier")
    store_location: Optional[str] = Field(default=None, alias="Store Location", description="Store location")
    salesperson_id: Optional[str] = Field(default=None, alias="Salesperson ID", description="Salesperson identifier")
    employee_name: Optional[str] = Field(default=None, alias="Employee Name", description="Salesperson name")
