"""
Synthetic Data Generator

Generates Superstore-shaped raw sales files for development and testing.
Includes:
- Customers with a fixed segment and location
- Products across categories and sub-categories
- Multi-line orders with discount-driven profit
- Optional exact duplicates and encoding corruption, as in the real extract
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np
import polars as pl
from faker import Faker
import structlog

from margin_analytics.ingestion.schema import SUPERSTORE_SCHEMA

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

REGIONS: Dict[str, List[Tuple[str, str, str]]] = {
    "West": [("California", "Los Angeles", "90036"), ("Washington", "Seattle", "98103")],
    "East": [("New York", "New York City", "10035"), ("Pennsylvania", "Philadelphia", "19140")],
    "Central": [("Texas", "Houston", "77095"), ("Illinois", "Chicago", "60623")],
    "South": [("Florida", "Miami", "33142"), ("Georgia", "Atlanta", "30318")],
}

CATEGORIES: Dict[str, List[str]] = {
    "Furniture": ["Bookcases", "Chairs", "Tables", "Furnishings"],
    "Office Supplies": ["Binders", "Paper", "Storage", "Art"],
    "Technology": ["Phones", "Machines", "Accessories", "Copiers"],
}

SEGMENTS = [("Consumer", 0.52), ("Corporate", 0.30), ("Home Office", 0.18)]
SHIP_MODES = [("Standard Class", 0.60), ("Second Class", 0.19), ("First Class", 0.15), ("Same Day", 0.06)]
DISCOUNTS = [(0.0, 0.48), (0.1, 0.05), (0.2, 0.30), (0.3, 0.03), (0.4, 0.04), (0.5, 0.03), (0.7, 0.04), (0.8, 0.03)]

DATE_FORMAT = "%d/%m/%Y"
FIRST_ORDER_DATE = date(2014, 1, 3)
ORDER_DAYS = 4 * 365


def _choice(rng: np.random.Generator, weighted: List[Tuple]) -> object:
    values, weights = zip(*weighted)
    return values[rng.choice(len(values), p=np.array(weights) / sum(weights))]


class SuperstoreGenerator:
    """
    Seeded generator of raw line-item files in the 21-column layout.

    Profit falls with discount: each product has a cost below its retail
    price, so deep discounts push lines into loss.

    Example:
        generator = SuperstoreGenerator(seed=42)
        df = generator.generate(n_orders=500)
        generator.write_csv(df, "data/raw/superstore.csv")
    """

    def __init__(
        self,
        seed: int = 42,
        n_customers: int = 100,
        n_products: int = 60,
    ):
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.customers = self._make_customers(n_customers)
        self.products = self._make_products(n_products)

    def _make_customers(self, n: int) -> List[Dict[str, str]]:
        customers = []
        regions = list(REGIONS)
        for i in range(n):
            name = self.fake.name()
            initials = "".join(part[0] for part in name.split()[:2]).upper()
            region = regions[self.rng.integers(len(regions))]
            state, city, postal_code = REGIONS[region][self.rng.integers(len(REGIONS[region]))]
            customers.append({
                "Customer ID": f"{initials}-{10000 + i * 15}",
                "Customer Name": name,
                "Segment": _choice(self.rng, SEGMENTS),
                "Region": region,
                "State": state,
                "City": city,
                "Postal Code": postal_code,
            })
        return customers

    def _make_products(self, n: int) -> List[Dict[str, object]]:
        products = []
        categories = list(CATEGORIES)
        for i in range(n):
            category = categories[self.rng.integers(len(categories))]
            sub_category = CATEGORIES[category][self.rng.integers(len(CATEGORIES[category]))]
            retail_price = round(float(self.rng.uniform(3, 900)), 2)
            products.append({
                "Product ID": f"{category[:3].upper()}-{sub_category[:2].upper()}-{10000000 + i}",
                "Category": category,
                "Sub-Category": sub_category,
                "Product Name": f"{self.fake.word().title()} {self.fake.word().title()} {sub_category}",
                "retail_price": retail_price,
                # Cost as a share of retail; gross margin between 10% and 45%
                "cost_ratio": float(self.rng.uniform(0.55, 0.90)),
            })
        return products

    def _make_line(self, order: Dict[str, object], product: Dict[str, object]) -> Dict[str, object]:
        quantity = int(self.rng.integers(1, 10))
        discount = float(_choice(self.rng, DISCOUNTS))
        retail_price = float(product["retail_price"])
        sale = round(retail_price * quantity * (1 - discount), 4)
        profit = round(sale - retail_price * float(product["cost_ratio"]) * quantity, 4)

        line = dict(order)
        line.update({
            "Product ID": product["Product ID"],
            "Category": product["Category"],
            "Sub-Category": product["Sub-Category"],
            "Product Name": product["Product Name"],
            "Sales": sale,
            "Quantity": quantity,
            "Discount": discount,
            "Profit": profit,
        })
        return line

    def generate(
        self,
        n_orders: int = 1000,
        duplicate_rate: float = 0.0,
        corruption_rate: float = 0.0,
    ) -> pl.DataFrame:
        """
        Generate a raw sales frame with display labels and text dates.

        Args:
            n_orders: Number of orders (each 1-4 line items)
            duplicate_rate: Share of lines re-emitted as exact duplicates
            corruption_rate: Share of product names given replacement characters

        Returns:
            DataFrame in the raw file layout
        """
        lines = []
        for i in range(n_orders):
            order_date = FIRST_ORDER_DATE + timedelta(days=int(self.rng.integers(ORDER_DAYS)))
            ship_date = order_date + timedelta(days=int(self.rng.integers(0, 8)))
            customer = self.customers[self.rng.integers(len(self.customers))]
            order = {
                "Order ID": f"US-{order_date.year}-{100000 + i}",
                "Order Date": order_date.strftime(DATE_FORMAT),
                "Ship Date": ship_date.strftime(DATE_FORMAT),
                "Ship Mode": _choice(self.rng, SHIP_MODES),
                "Country": "United States",
                **customer,
            }
            n_lines = int(self.rng.integers(1, 5))
            for index in self.rng.choice(len(self.products), size=n_lines, replace=False):
                lines.append(self._make_line(order, self.products[index]))

        for line in lines:
            if self.rng.random() < corruption_rate:
                words = line["Product Name"].split(" ", 1)
                line["Product Name"] = "�".join(words) if len(words) == 2 else words[0] + "�"

        duplicates = [dict(line) for line in lines if self.rng.random() < duplicate_rate]
        lines.extend(duplicates)

        for row_id, line in enumerate(lines, start=1):
            line["Row ID"] = row_id

        df = pl.DataFrame(lines).select(SUPERSTORE_SCHEMA.labels)

        logger.info(
            "Generated raw sales data",
            orders=n_orders,
            lines=df.height,
            duplicates=len(duplicates),
        )
        return df

    def write_csv(self, df: pl.DataFrame, path: Union[str, Path]) -> Path:
        """Write a generated frame to CSV, creating parent directories"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.write_csv(path)
        return path


def generate_sales_file(
    path: Union[str, Path],
    n_orders: int = 1000,
    seed: int = 42,
    duplicate_rate: float = 0.0,
    corruption_rate: float = 0.0,
) -> Path:
    """
    Convenience function generating and writing one raw sales file.
    """
    generator = SuperstoreGenerator(seed=seed)
    df = generator.generate(n_orders, duplicate_rate=duplicate_rate, corruption_rate=corruption_rate)
    return generator.write_csv(df, path)
