"""Enumerated field table for sales records.

Every backend and the HTTP payload agree on one table: the model attribute
name, the human-readable label consumers see (and Supabase uses as column
name), the SQL column name, and the comparison kind used by the sorter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Tuple

from ..errors import InvalidSortField

FieldKind = Literal["string", "integer", "decimal", "date"]


@dataclass(frozen=True)
class SalesField:
    name: str
    label: str
    column: str
    kind: FieldKind

    @property
    def is_numeric(self) -> bool:
        return self.kind in ("integer", "decimal")


SALES_FIELDS: Tuple[SalesField, ...] = (
    SalesField("transaction_id", "Transaction ID", "transaction_id", "string"),
    SalesField("sale_date", "Date", "date", "date"),
    SalesField("customer_id", "Customer ID", "customer_id", "string"),
    SalesField("customer_name", "Customer Name", "customer_name", "string"),
    SalesField("phone_number", "Phone Number", "phone_number", "string"),
    SalesField("gender", "Gender", "gender", "string"),
    SalesField("age", "Age", "age", "integer"),
    SalesField("customer_region", "Customer Region", "customer_region", "string"),
    SalesField("customer_type", "Customer Type", "customer_type", "string"),
    SalesField("product_id", "Product ID", "product_id", "string"),
    SalesField("product_name", "Product Name", "product_name", "string"),
    SalesField("brand", "Brand", "brand", "string"),
    SalesField("product_category", "Product Category", "product_category", "string"),
    SalesField("tags", "Tags", "tags", "string"),
    SalesField("quantity", "Quantity", "quantity", "integer"),
    SalesField("price_per_unit", "Price per Unit", "price_per_unit", "decimal"),
    SalesField("discount_percentage", "Discount Percentage", "discount_percentage", "decimal"),
    SalesField("total_amount", "Total Amount", "total_amount", "decimal"),
    SalesField("final_amount", "Final Amount", "final_amount", "decimal"),
    SalesField("payment_method", "Payment Method", "payment_method", "string"),
    SalesField("order_status", "Order Status", "order_status", "string"),
    SalesField("delivery_type", "Delivery Type", "delivery_type", "string"),
    SalesField("store_id", "Store ID", "store_id", "string"),
    SalesField("store_location", "Store Location", "store_location", "string"),
    SalesField("salesperson_id", "Salesperson ID", "salesperson_id", "string"),
    SalesField("employee_name", "Employee Name", "employee_name", "string"),
)

FIELDS_BY_NAME: Dict[str, SalesField] = {f.name: f for f in SALES_FIELDS}
FIELDS_BY_LABEL: Dict[str, SalesField] = {f.label: f for f in SALES_FIELDS}

# Sort labels offered by the dashboard that are not field labels.
SORT_LABEL_ALIASES: Dict[str, str] = {
    "Discount": "discount_percentage",
}

TRANSACTION_ID = FIELDS_BY_NAME["transaction_id"]
DATE = FIELDS_BY_NAME["sale_date"]
AGE = FIELDS_BY_NAME["age"]
GENDER = FIELDS_BY_NAME["gender"]
REGION = FIELDS_BY_NAME["customer_region"]
CATEGORY = FIELDS_BY_NAME["product_category"]
PAYMENT_METHOD = FIELDS_BY_NAME["payment_method"]
TAGS = FIELDS_BY_NAME["tags"]
QUANTITY = FIELDS_BY_NAME["quantity"]
TOTAL_AMOUNT = FIELDS_BY_NAME["total_amount"]
FINAL_AMOUNT = FIELDS_BY_NAME["final_amount"]

SEARCH_FIELDS: Tuple[SalesField, ...] = (
    FIELDS_BY_NAME["customer_name"],
    FIELDS_BY_NAME["phone_number"],
    FIELDS_BY_NAME["product_name"],
    CATEGORY,
)


def resolve_sort_field(sort_by: str) -> SalesField:
    """Map a requested sort name to its field.

    Exact labels win ("Total Amount"), then the dashboard's extra sort labels
    ("Discount"), then the lower-cased, underscore-joined form of the name
    matched against attribute and column names ("total amount", "date").
    """
    key = sort_by.strip()
    if key in FIELDS_BY_LABEL:
        return FIELDS_BY_LABEL[key]
    if key in SORT_LABEL_ALIASES:
        return FIELDS_BY_NAME[SORT_LABEL_ALIASES[key]]
    normalized = key.lower().replace(" ", "_")
    for field in SALES_FIELDS:
        if normalized in (field.name, field.column):
            return field
    raise InvalidSortField(f"Invalid sort field: {sort_by!r} is not a known column")


def check_field_table() -> None:
    """Verify the table against SalesRecord; raises RuntimeError on drift."""
    from .models.sales_records import SalesRecord

    problems = []
    for attr in ("name", "label", "column"):
        values = [getattr(f, attr) for f in SALES_FIELDS]
        if len(values) != len(set(values)):
            problems.append(f"duplicate field {attr}s")

    model_fields = SalesRecord.model_fields
    missing = set(FIELDS_BY_NAME) - set(model_fields)
    extra = set(model_fields) - set(FIELDS_BY_NAME)
    if missing:
        problems.append(f"fields missing from SalesRecord: {sorted(missing)}")
    if extra:
        problems.append(f"SalesRecord fields missing from table: {sorted(extra)}")
    for name, info in model_fields.items():
        field = FIELDS_BY_NAME.get(name)
        if field is not None and info.alias != field.label:
            problems.append(f"{name}: alias {info.alias!r} != label {field.label!r}")

    for alias, target in SORT_LABEL_ALIASES.items():
        if target not in FIELDS_BY_NAME:
            problems.append(f"sort alias {alias!r} targets unknown field {target!r}")

    if problems:
        raise RuntimeError("Sales field table is inconsistent: " + "; ".join(problems))
