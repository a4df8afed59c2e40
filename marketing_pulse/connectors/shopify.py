"""
Shopify Connector for Marketing Pulse

Pulls orders and products for the e-commerce view, with a per-country
breakdown keyed by shipping country code.
"""

import logging
import os
import time
from collections import Counter, OrderedDict
from datetime import datetime, timedelta

import requests
from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.schemas import (
    OrdersPoint,
    ProductSales,
    ShopifyCountry,
    ShopifyOverview,
    ShopifyPayload,
    StatusCount,
)

load_dotenv()

logger = logging.getLogger(__name__)

TOP_PRODUCTS = 10


def order_total(order: dict) -> float:
    return float(order.get("total_price") or 0)


def order_country(order: dict) -> str:
    """Shipping country code, falling back to billing; "" when neither is set."""
    for field in ("shipping_address", "billing_address"):
        address = order.get(field) or {}
        if address.get("country_code"):
            return address["country_code"].upper()
    return ""


def orders_over_time(orders: list[dict]) -> list[OrdersPoint]:
    days = OrderedDict()
    for order in sorted(orders, key=lambda o: o.get("created_at", "")):
        created = datetime.fromisoformat(order["created_at"].replace("Z", "+00:00"))
        day = days.setdefault(f"{created.day} {created:%b}", [0, 0.0])
        day[0] += 1
        day[1] += order_total(order)

    return [OrdersPoint(date=date, orders=count, revenue=round(revenue, 2)) for date, (count, revenue) in days.items()]


def top_products(orders: list[dict], limit: int = TOP_PRODUCTS) -> list[ProductSales]:
    sales = {}
    for order in orders:
        for item in order.get("line_items") or []:
            title = item.get("title", "Unknown product")
            product = sales.setdefault(title, [0, 0.0])
            quantity = item.get("quantity") or 0
            product[0] += quantity
            product[1] += float(item.get("price") or 0) * quantity

    ranked = sorted(sales.items(), key=lambda kv: kv[1][1], reverse=True)[:limit]
    return [ProductSales(name=name, quantity=qty, revenue=round(revenue, 2)) for name, (qty, revenue) in ranked]


def orders_by_status(orders: list[dict]) -> list[StatusCount]:
    counts = Counter(order.get("financial_status") or "unknown" for order in orders)
    total = len(orders)
    return [
        StatusCount(
            status=status.capitalize(),
            count=count,
            percentage=round(count / total * 100) if total else 0,
        )
        for status, count in counts.items()
    ]


def summarize_orders(orders: list[dict]) -> dict:
    """Totals and series shared by the overall and per-country views."""
    revenue = sum(order_total(o) for o in orders)
    return {
        "total_orders": len(orders),
        "total_revenue": round(revenue, 2),
        "average_order_value": round(revenue / len(orders), 2) if orders else 0,
        "orders_over_time": orders_over_time(orders),
        "top_products": top_products(orders),
        "orders_by_status": orders_by_status(orders),
    }


class ShopifyConnector:
    """Connector for Shopify Admin API."""

    SOURCE = "shopify"
    API_VERSION = "2024-01"
    TIMEOUT = 30

    def __init__(self):
        self.access_token = os.getenv("SHOPIFY_ACCESS_TOKEN")
        self.store_url = (os.getenv("SHOPIFY_STORE_URL") or "").strip().rstrip("/")
        if self.store_url and not self.store_url.startswith("https://"):
            self.store_url = f"https://{self.store_url}"

        self.base_url = f"{self.store_url}/admin/api/{self.API_VERSION}"
        self.headers = {
            "X-Shopify-Access-Token": self.access_token or "",
            "Content-Type": "application/json",
        }

    def _check_credentials(self):
        """Verify credentials are present."""
        missing = missing_settings({
            "SHOPIFY_STORE_URL": self.store_url,
            "SHOPIFY_ACCESS_TOKEN": self.access_token,
        })
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def _make_request(self, endpoint: str, params: dict = None) -> dict:
        """Make authenticated request to Shopify API."""
        url = f"{self.base_url}/{endpoint}"
        response = requests.get(url, headers=self.headers, params=params, timeout=self.TIMEOUT)

        if response.status_code == 429:  # Rate limited
            retry_after = int(float(response.headers.get("Retry-After", 2)))
            logger.warning("Shopify rate limited. Waiting %s seconds...", retry_after)
            time.sleep(retry_after)
            return self._make_request(endpoint, params)

        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, response.text)

        return response.json()

    def get_all_orders(self, start_date: str, end_date: str) -> list[dict]:
        """Every order created in the range, paging by since_id."""
        all_orders = []
        since_id = None

        while True:
            params = {
                "status": "any",
                "created_at_min": f"{start_date}T00:00:00Z",
                "created_at_max": f"{end_date}T23:59:59Z",
                "limit": 250,
            }
            if since_id:
                params["since_id"] = since_id

            orders = self._make_request("orders.json", params).get("orders", [])
            if not orders:
                break

            all_orders.extend(orders)
            since_id = orders[-1]["id"]
            if len(orders) < 250:
                break

        logger.info("Fetched %d Shopify orders", len(all_orders))
        return all_orders

    def get_products_count(self) -> int:
        try:
            return self._make_request("products/count.json").get("count", 0)
        except SourceAPIError as e:
            logger.warning("Failed to fetch Shopify product count: %s", e)
            return 0

    def get_dashboard_data(self, start_date: str, end_date: str) -> ShopifyPayload:
        self._check_credentials()
        logger.info("Fetching Shopify data for %s..%s", start_date, end_date)

        orders = self.get_all_orders(start_date, end_date)
        summary = summarize_orders(orders)

        by_country = OrderedDict()
        for order in orders:
            code = order_country(order)
            if code:
                by_country.setdefault(code, []).append(order)

        return ShopifyPayload(
            overview=ShopifyOverview(
                total_orders=summary["total_orders"],
                total_revenue=summary["total_revenue"],
                average_order_value=summary["average_order_value"],
                total_products=self.get_products_count(),
            ),
            orders_over_time=summary["orders_over_time"],
            top_products=summary["top_products"],
            orders_by_status=summary["orders_by_status"],
            country_breakdown=[
                ShopifyCountry(country_code=code, **summarize_orders(country_orders))
                for code, country_orders in by_country.items()
            ],
        )


def main():
    """Test the connector."""
    connector = ShopifyConnector()

    end_date = datetime.now().strftime("%Y-%m-%d")
    start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

    try:
        data = connector.get_dashboard_data(start_date, end_date)
        print(f"Orders: {data.overview.total_orders:,}")
        print(f"Revenue: {data.overview.total_revenue:,.2f}")
        print(f"AOV: {data.overview.average_order_value:,.2f}")
        print("\nTop products:")
        for product in data.top_products[:5]:
            print(f"  {product.name}: {product.quantity} sold, {product.revenue:,.2f}")
    except SourceNotConfigured as e:
        print(f"Configuration error: {e}")
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
