#!/usr/bin/env python3
"""
seed_data.py

Generates realistic fake retail sales transactions to a single CSV
(default: sample_data/sales.csv), one row per transaction, with the column
labels the dashboard reads.

Run:
  python -m salesdash.seed_data --rows 500 --days 90
"""

from __future__ import annotations
import argparse
import csv
import os
import random
import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from salesdash.config import get_config
from salesdash.data.fields import SALES_FIELDS

# -----------------------------
# Config & helper structures
# -----------------------------

REGIONS = ["North", "South", "East", "West", "Central"]
CUSTOMER_TYPES = ["New", "Returning", "Loyal"]
GENDERS = ["Male", "Female"]

FIRST_NAMES = [
    "Aarav", "Aisha", "Arjun", "Diya", "Ishaan", "Kavya", "Meera", "Neha",
    "Priya", "Rahul", "Rohan", "Sana", "Vikram", "Zoya", "Karan", "Ananya",
]
LAST_NAMES = [
    "Sharma", "Patel", "Khan", "Singh", "Iyer", "Das", "Mehta", "Rao",
    "Gupta", "Nair", "Reddy", "Joshi", "Kapoor", "Bose",
]

CATEGORIES = {
    "Electronics": {
        "brands": ["VoltEdge", "Sonix", "PixelCore"],
        "products": ["Wireless Earbuds", "Smartphone", "Smartwatch", "Bluetooth Speaker", "Power Bank"],
        "tags": ["wireless", "smart", "gadgets", "portable", "unisex"],
        "price": (499.0, 29999.0),
    },
    "Clothing": {
        "brands": ["ThreadLine", "UrbanWeave", "Cottonwood"],
        "products": ["Cotton Kurta", "Denim Jacket", "Linen Shirt", "Running Shorts", "Hoodie"],
        "tags": ["cotton", "casual", "fashion", "summer", "unisex"],
        "price": (299.0, 4999.0),
    },
    "Beauty": {
        "brands": ["GlowCare", "PureForm", "DailyZen"],
        "products": ["Face Serum", "Lipstick", "Sunscreen", "Hair Oil", "Perfume"],
        "tags": ["skincare", "organic", "makeup", "fragrance-free", "beauty"],
        "price": (149.0, 2999.0),
    },
    "Home": {
        "brands": ["FreshNest", "HomeGuard", "Oakline"],
        "products": ["Table Lamp", "Cushion Cover", "Wall Clock", "Bedsheet Set", "Planter"],
        "tags": ["decor", "kitchen", "comfort", "eco", "gift"],
        "price": (199.0, 7999.0),
    },
    "Sports": {
        "brands": ["StrideMax", "PeakFit", "CourtKing"],
        "products": ["Yoga Mat", "Dumbbell Set", "Cricket Bat", "Football", "Skipping Rope"],
        "tags": ["fitness", "outdoor", "training", "gym", "unisex"],
        "price": (249.0, 9999.0),
    },
}

PAYMENT_METHODS = ["Credit Card", "Debit Card", "UPI", "Cash", "Net Banking", "Wallet"]
ORDER_STATUSES = ["Completed", "Completed", "Completed", "Pending", "Cancelled", "Returned"]
DELIVERY_TYPES = ["Standard", "Express", "Store Pickup"]
STORE_LOCATIONS = ["Mumbai", "Delhi", "Bengaluru", "Chennai", "Kolkata", "Pune", "Hyderabad", "Jaipur"]
DISCOUNT_STEPS = [0, 0, 5, 10, 15, 20, 25, 30]

CENT = Decimal("0.01")


@dataclass
class Customer:
    customer_id: str
    name: str
    phone: str
    gender: str
    age: int
    region: str
    customer_type: str


# -----------------------------
# Utility functions
# -----------------------------

def ensure_dir(path: str) -> None:
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)

def zipf_like_index(n: int, s: float = 1.15) -> int:
    """
    Return an index [0, n-1] with a bias toward lower indices (popular items).
    s ~1.0-1.3 controls skew.
    """
    r = random.random()
    idx = int((r ** (1.0 / (1.0 + s))) * n)
    if idx >= n:
        idx = n - 1
    return idx

def weekend_multiplier(d: date) -> float:
    return 1.15 if d.weekday() >= 5 else 1.0  # Sat/Sun uplift

def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)

def rand_phone() -> str:
    return str(random.choice([6, 7, 8, 9])) + "".join(random.choices("0123456789", k=9))


# -----------------------------
# Core generators
# -----------------------------

def gen_customers(n: int) -> List[Customer]:
    customers = []
    for i in range(1, n + 1):
        customers.append(Customer(
            customer_id=f"CUST-{i:05d}",
            name=f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
            phone=rand_phone(),
            gender=random.choice(GENDERS),
            age=random.randint(18, 70),
            region=random.choice(REGIONS),
            customer_type=random.choice(CUSTOMER_TYPES),
        ))
    return customers

def gen_products() -> List[Dict]:
    products = []
    pid = 1
    for category, spec in CATEGORIES.items():
        for name in spec["products"]:
            lo, hi = spec["price"]
            products.append({
                "product_id": f"PROD-{pid:04d}",
                "name": name,
                "brand": random.choice(spec["brands"]),
                "category": category,
                "tags": ",".join(random.sample(spec["tags"], k=random.randint(1, 3))),
                "base_price": Decimal(str(round(random.uniform(lo, hi), 2))),
            })
            pid += 1
    # Random popularity order for zipf_like_index
    random.shuffle(products)
    return products

def gen_sales_rows(n_rows: int, start_d: date, days: int) -> List[Dict[str, str]]:
    """Return `n_rows` sales rows keyed by column label, spread over `days` days."""
    customers = gen_customers(max(1, n_rows // 3))
    products = gen_products()
    salespeople = [(f"EMP-{i:03d}", f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}") for i in range(1, 13)]
    stores = [(f"ST-{i:03d}", loc) for i, loc in enumerate(STORE_LOCATIONS, start=1)]

    day_weights = [weekend_multiplier(start_d + timedelta(days=d)) for d in range(days)]
    rows = []
    for i in range(1, n_rows + 1):
        sale_date = start_d + timedelta(days=random.choices(range(days), weights=day_weights)[0])
        customer = random.choice(customers)
        product = products[zipf_like_index(len(products))]
        store_id, store_location = random.choice(stores)
        salesperson_id, employee_name = random.choice(salespeople)

        quantity = random.randint(1, 5)
        discount = random.choice(DISCOUNT_STEPS)
        total = money(product["base_price"] * quantity)
        final = money(total * (Decimal(100 - discount) / Decimal(100)))

        values = {
            "transaction_id": f"TXN-{i:06d}",
            "sale_date": sale_date.isoformat(),
            "customer_id": customer.customer_id,
            "customer_name": customer.name,
            "phone_number": customer.phone,
            "gender": customer.gender,
            "age": customer.age,
            "customer_region": customer.region,
            "customer_type": customer.customer_type,
            "product_id": product["product_id"],
            "product_name": product["name"],
            "brand": product["brand"],
            "product_category": product["category"],
            "tags": product["tags"],
            "quantity": quantity,
            "price_per_unit": product["base_price"],
            "discount_percentage": discount,
            "total_amount": total,
            "final_amount": final,
            "payment_method": random.choice(PAYMENT_METHODS),
            "order_status": random.choice(ORDER_STATUSES),
            "delivery_type": random.choice(DELIVERY_TYPES),
            "store_id": store_id,
            "store_location": store_location,
            "salesperson_id": salesperson_id,
            "employee_name": employee_name,
        }
        rows.append({f.label: values[f.name] for f in SALES_FIELDS})
    return rows

def write_csv(path: str, rows: List[Dict], headers: List[str]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=headers)
        w.writeheader()
        for r in rows:
            w.writerow(r)


# -----------------------------
# Main
# -----------------------------

def main(argv: Optional[List[str]] = None) -> int:
    config = get_config()

    parser = argparse.ArgumentParser(description="Generate fake retail sales transactions to a CSV.")
    parser.add_argument("--rows", type=int, default=config.default_seed_rows, help="Number of transactions.")
    parser.add_argument("--days", type=int, default=config.default_seed_days, help="Number of days of sales history.")
    parser.add_argument("--start-date", type=str, default=None, help="YYYY-MM-DD (defaults to today - days + 1)")
    parser.add_argument("--output", type=str, default=config.data_file)
    parser.add_argument("--seed", type=int, default=config.default_seed_value)
    parser.add_argument("--no-overwrite", action="store_true", help="Fail if the CSV already exists.")
    args = parser.parse_args(argv)

    if args.rows < 1 or args.days < 1:
        print("--rows and --days must be positive", file=sys.stderr)
        return 2
    if args.no_overwrite and os.path.exists(args.output):
        print(f"Refusing to overwrite existing file: {args.output}", file=sys.stderr)
        return 2

    random.seed(args.seed)

    # time window
    if args.start_date:
        start_d = date.fromisoformat(args.start_date)
    else:
        start_d = (datetime.now(timezone.utc).date() - timedelta(days=args.days - 1))

    rows = gen_sales_rows(args.rows, start_d, args.days)

    ensure_dir(os.path.dirname(args.output))
    write_csv(args.output, rows, [f.label for f in SALES_FIELDS])

    # simple summary
    end_d = start_d + timedelta(days=args.days - 1)
    print(f"Generated {len(rows)} sales transactions in {args.output}")
    print(f" window: {start_d.isoformat()} .. {end_d.isoformat()} | seed: {args.seed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
