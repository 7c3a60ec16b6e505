"""
Dashboard aggregation over already-loaded rows

Kept free of database access so the counters can be checked on plain objects.
"""
from utils.lookups import as_aware
from datetime import datetime
from typing import Optional, Sequence

RECENT_ORDERS_LIMIT = 5
DELIVERED = "delivered"
PENDING = "pending"


def start_of_month(now: Optional[datetime] = None) -> datetime:
    """Local midnight on the first of the current month, as an aware datetime"""
    now = now or datetime.now()
    return datetime(now.year, now.month, 1).astimezone()


def orders_since(orders: Sequence, since: datetime) -> list:
    return [order for order in orders if as_aware(order.order_date) >= since]


def recent_orders(orders: Sequence, limit: int = RECENT_ORDERS_LIMIT) -> list:
    return sorted(orders, key=lambda order: as_aware(order.order_date), reverse=True)[:limit]


def compute_vendor_stats(orders, inventory, group_buys, trust_score, month_start: datetime) -> dict:
    monthly = orders_since(orders, month_start)

    return {
        "total_orders": len(orders),
        # Every status counts towards spend
        "total_spent": sum(order.total_amount for order in orders),
        "monthly_orders": len(monthly),
        "monthly_spent": sum(order.total_amount for order in monthly),
        "trust_score": trust_score,
        "low_stock_items": sum(1 for item in inventory if item.current_stock <= item.min_stock_level),
        "active_group_buys": sum(1 for group_buy in group_buys if group_buy.status == "active"),
        "recent_orders": recent_orders(orders),
    }


def compute_supplier_stats(orders, products, month_start: datetime) -> dict:
    delivered = [order for order in orders if order.status == DELIVERED]
    monthly = orders_since(orders, month_start)

    return {
        "total_orders": len(orders),
        "total_revenue": sum(order.total_amount for order in delivered),
        "monthly_orders": len(monthly),
        "monthly_revenue": sum(order.total_amount for order in monthly if order.status == DELIVERED),
        "active_vendors": len({order.vendor_id for order in orders}),
        "total_products": len(products),
        "active_products": sum(1 for product in products if product.is_active),
        "pending_orders": sum(1 for order in orders if order.status == PENDING),
        "recent_orders": recent_orders(orders),
    }
