from pathlib import Path

import pandas as pd
import pytest

from salesdash.config import set_config_for_test
from salesdash.data.backends.csv_backend import CsvDataAccess
from salesdash.data.fields import SALES_FIELDS


def _row(tid, day, name, phone, gender, age, region, product, category, tags, qty, price, discount, total, final, payment):
    return {
        "Transaction ID": tid,
        "Date": day,
        "Customer ID": f"C-{tid}",
        "Customer Name": name,
        "Phone Number": phone,
        "Gender": gender,
        "Age": age,
        "Customer Region": region,
        "Customer Type": "Returning",
        "Product ID": f"P-{tid}",
        "Product Name": product,
        "Brand": "Acme",
        "Product Category": category,
        "Tags": tags,
        "Quantity": qty,
        "Price per Unit": price,
        "Discount Percentage": discount,
        "Total Amount": total,
        "Final Amount": final,
        "Payment Method": payment,
        "Order Status": "Completed",
        "Delivery Type": "Standard",
        "Store ID": "ST-001",
        "Store Location": "Mumbai",
        "Salesperson ID": "EMP-001",
        "Employee Name": "Neha Joshi",
    }


# Eight transactions in Transaction ID order.
# Totals: units 19, final 1135.00, total 1250.00, discount 115.00.
SAMPLE_ROWS = [
    _row("T001", "2023-01-15", "Aisha Khan", "9876543210", "Female", 25, "North", "Cotton Kurta", "Clothing", "Cotton,Casual", 2, 50.0, 10, 100.0, 90.0, "UPI"),
    _row("T002", "2023-03-10", "Rahul Sharma", "9123456780", "Male", 34, "South", "Wireless Earbuds", "Electronics", "Electronics,Gadget", 1, 500.0, 10, 500.0, 450.0, "Credit Card"),
    _row("T003", "2023-06-01", "Priya Singh", "9988776655", "Female", 45, "East", "Face Serum", "Beauty", "Skincare, Organic", 3, 20.0, 0, 60.0, 60.0, "Cash"),
    _row("T004", "2023-06-01", "Aisha Patel", "9000011111", "Female", 52, "West", "Smartphone X", "Electronics", "smartphone,Gadget", 1, 300.0, 10, 300.0, 270.0, "Debit Card"),
    _row("T005", "2023-07-20", "Vikram Rao", "9555512345", "Male", 19, "North", "Yoga Mat", "Sports", "Fitness", 4, 20.0, 10, 80.0, 72.0, "UPI"),
    _row("T006", "2023-08-05", "Meera Das", "9444498765", "Female", 61, "Central", "Denim Jacket", "Clothing", "", 2, 20.0, 0, 40.0, 40.0, "Cash"),
    _row("T007", "2023-09-12", "Karan Mehta", "9333322222", "Male", 28, "South", "Table Lamp", "Home", "Decor,Casual", 5, 30.0, 10, 150.0, 135.0, "Credit Card"),
    _row("T008", "2023-12-31", "Sana Iqbal", "9222233333", "Female", 38, "East", "Linen Shirt", "Clothing", "Casual,Cotton", 1, 20.0, 10, 20.0, 18.0, "UPI"),
]


@pytest.fixture(autouse=True)
def test_config():
    set_config_for_test(app_env="test", log_level="WARNING", data_source="csv")
    yield


@pytest.fixture
def sample_rows():
    return [dict(r) for r in SAMPLE_ROWS]


@pytest.fixture
def make_row():
    return _row


@pytest.fixture
def write_sales_csv(tmp_path):
    def _write(rows, name="sales.csv", columns=None) -> Path:
        path = tmp_path / name
        frame = pd.DataFrame(rows, columns=columns or [f.label for f in SALES_FIELDS])
        frame.to_csv(path, index=False)
        return path
    return _write


@pytest.fixture
def sales_csv(write_sales_csv, sample_rows):
    return write_sales_csv(sample_rows)


@pytest.fixture
def csv_access(sales_csv):
    return CsvDataAccess(data_file=sales_csv)
