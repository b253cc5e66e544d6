#!/usr/bin/env python3
"""
Guest count business rule plus the associate/search refinements and
presentation-time sorting used by the dashboard
"""

from datetime import datetime, timezone
from typing import AbstractSet, Iterable, List, Optional

from errors import ValidationError
from order_models import Order

SORT_FIELDS = ('orderNumber', 'salesAssociate', 'orderDate', 'totalAmount')
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def needs_guest_count(order: Order, excluded_product_ids: AbstractSet[str]) -> bool:
    """An order needs a guest count unless it has one or carries an exempt product"""
    if not order.is_missing_guest_count:
        return False
    return excluded_product_ids.isdisjoint(order.product_ids)


def filter_missing_guest_count(orders: Iterable[Order], excluded_product_ids: AbstractSet[str]) -> List[Order]:
    return [order for order in orders if needs_guest_count(order, excluded_product_ids)]


def filter_by_associates(orders: Iterable[Order], associates: Optional[AbstractSet[str]]) -> List[Order]:
    """Keep orders whose associate (or 'Unknown') is selected; no selection keeps all"""
    if not associates:
        return list(orders)
    return [order for order in orders if order.associate_name in associates]


def filter_by_search(orders: Iterable[Order], search: Optional[str]) -> List[Order]:
    """Case-insensitive substring match on the order number; blank search keeps all"""
    term = (search or '').strip().lower()
    if not term:
        return list(orders)
    return [order for order in orders if term in order.order_number.lower()]


def refine_orders(orders: Iterable[Order], associates: Optional[AbstractSet[str]] = None,
                  search: Optional[str] = None) -> List[Order]:
    return filter_by_search(filter_by_associates(orders, associates), search)


def parse_associates(value: Optional[str]) -> frozenset:
    """Split a comma separated associates query value"""
    if not value:
        return frozenset()
    return frozenset(name.strip() for name in value.split(',') if name.strip())


def list_associates(orders: Iterable[Order]) -> List[str]:
    return sorted({order.associate_name for order in orders})


def sort_orders(orders: Iterable[Order], field: str, direction: str = 'asc') -> List[Order]:
    """
    Sort orders for display

    Args:
        field: one of orderNumber, salesAssociate, orderDate, totalAmount
        direction: 'asc' or 'desc'
    """
    if field not in SORT_FIELDS:
        raise ValidationError(f"Unsupported sort field: {field}")
    if direction not in ('asc', 'desc'):
        raise ValidationError(f"Unsupported sort direction: {direction}")

    if field == 'orderNumber':
        key = lambda order: order.order_number
    elif field == 'salesAssociate':
        key = lambda order: order.sales_associate or ''
    elif field == 'orderDate':
        key = lambda order: order.effective_date or _EPOCH
    else:
        key = lambda order: order.total

    return sorted(orders, key=key, reverse=(direction == 'desc'))
