#!/usr/bin/env python3
"""
Order data model and the boundary parser for Commerce7 order JSON

Commerce7 payloads are loose: dates and money live under several field
names and nested objects may be null. parse_order resolves all of that
once so the rest of the pipeline works with fixed, immutable records.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from logger_config import get_logger

logger = get_logger('order_models')

UNKNOWN_ASSOCIATE = 'Unknown'
UNKNOWN_PRODUCT = 'Unknown Product'
RESERVATION_KEYWORDS = ('reservation', 'tasting', 'tour')


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first value that is not None/empty for the given keys"""
    for key in keys:
        value = data.get(key)
        if value not in (None, ''):
            return value
    return None


def parse_money(value: Any) -> Optional[int]:
    """Parse an amount in minor units (cents); None when absent or malformed"""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Could not parse money value {value!r}")
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an upstream timestamp into an aware UTC datetime"""
    if value in (None, ''):
        return None
    try:
        timestamp = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        logger.debug(f"Could not parse timestamp {value!r}")
        return None
    if pd.isna(timestamp):
        return None
    return timestamp.to_pydatetime()


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'


def _parse_guest_count(value: Any) -> Optional[int]:
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Could not parse guest count {value!r}")
        return None


@dataclass(frozen=True)
class Item:
    product_id: Optional[str]
    name: str
    sku: Optional[str]
    quantity: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    @property
    def is_reservation(self) -> bool:
        name = self.name.lower()
        return any(keyword in name for keyword in RESERVATION_KEYWORDS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productId': self.product_id,
            'productTitle': self.name,
            'sku': self.sku,
            'quantity': self.quantity,
            'price': self.unit_price,
            'lineTotal': self.line_total,
            'isReservation': self.is_reservation,
        }


@dataclass(frozen=True)
class Address:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state_code: Optional[str] = None
    zip_code: Optional[str] = None
    country_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'address': self.address,
            'address2': self.address2,
            'city': self.city,
            'stateCode': self.state_code,
            'zipCode': self.zip_code,
            'countryCode': self.country_code,
        }


@dataclass(frozen=True)
class Order:
    """A Commerce7 order, normalized and read-only"""

    id: str
    order_number: str
    paid_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    sales_associate: Optional[str] = None
    subtotal: int = 0
    tax_total: int = 0
    tip_total: int = 0
    shipping_total: int = 0
    duty_total: int = 0
    total: int = 0
    guest_count: Optional[int] = None
    items: Tuple[Item, ...] = field(default_factory=tuple)
    notes: Optional[str] = None
    ship_to: Optional[Address] = None

    @property
    def associate_name(self) -> str:
        return self.sales_associate or UNKNOWN_ASSOCIATE

    @property
    def effective_date(self) -> Optional[datetime]:
        """Paid date, falling back to the order date"""
        return self.paid_at or self.created_at

    @property
    def effective_day(self) -> Optional[str]:
        effective = self.effective_date
        return effective.strftime('%Y-%m-%d') if effective else None

    @property
    def is_missing_guest_count(self) -> bool:
        return not self.guest_count

    @property
    def product_ids(self) -> List[str]:
        return [item.product_id for item in self.items if item.product_id]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the Commerce7 field names the dashboard renders"""
        return {
            'id': self.id,
            'orderNumber': self.order_number,
            'orderPaidDate': _isoformat(self.paid_at),
            'orderSubmittedDate': _isoformat(self.submitted_at),
            'orderDate': _isoformat(self.created_at),
            'salesAssociate': {'name': self.sales_associate} if self.sales_associate else None,
            'subTotal': self.subtotal,
            'taxTotal': self.tax_total,
            'tipTotal': self.tip_total,
            'shippingTotal': self.shipping_total,
            'dutyTotal': self.duty_total,
            'total': self.total,
            'guestCount': self.guest_count,
            'items': [item.to_dict() for item in self.items],
            'notes': self.notes,
            'shipTo': self.ship_to.to_dict() if self.ship_to else None,
        }


def parse_item(data: Dict[str, Any]) -> Item:
    product = data.get('product')
    if not isinstance(product, dict):
        product = {}
    name = _first_present(data, 'productTitle', 'productName', 'name') or product.get('name')
    sku = _first_present(data, 'sku', 'productSku') or product.get('sku')
    price = parse_money(_first_present(data, 'price', 'unitPrice'))
    if price is None:
        price = parse_money(product.get('price'))

    try:
        quantity = int(data.get('quantity') or 0)
    except (TypeError, ValueError):
        quantity = 0

    return Item(
        product_id=data.get('productId') or product.get('id'),
        name=name or UNKNOWN_PRODUCT,
        sku=sku,
        quantity=quantity,
        unit_price=price or 0,
    )


def parse_address(data: Optional[Dict[str, Any]]) -> Optional[Address]:
    if not isinstance(data, dict) or not data:
        return None
    return Address(
        first_name=data.get('firstName'),
        last_name=data.get('lastName'),
        address=data.get('address'),
        address2=data.get('address2'),
        city=data.get('city'),
        state_code=data.get('stateCode'),
        zip_code=data.get('zipCode'),
        country_code=data.get('countryCode'),
    )


def parse_order(data: Dict[str, Any]) -> Order:
    """
    Map one Commerce7 order payload onto the Order model

    Precedence: orderPaidDate is the paid date; orderDate then createdAt is
    the order date; total then totalAmount is the total.
    """
    associate = data.get('salesAssociate') or {}
    if isinstance(associate, str):
        associate = {'name': associate}
    elif not isinstance(associate, dict):
        associate = {}
    money = {
        key: parse_money(data.get(key)) or 0
        for key in ('subTotal', 'taxTotal', 'tipTotal', 'shippingTotal', 'dutyTotal')
    }
    total = parse_money(_first_present(data, 'total', 'totalAmount'))

    return Order(
        id=str(data.get('id') or ''),
        order_number=str(data.get('orderNumber') or ''),
        paid_at=parse_timestamp(data.get('orderPaidDate')),
        submitted_at=parse_timestamp(data.get('orderSubmittedDate')),
        created_at=parse_timestamp(_first_present(data, 'orderDate', 'createdAt')),
        sales_associate=associate.get('name') or None,
        subtotal=money['subTotal'],
        tax_total=money['taxTotal'],
        tip_total=money['tipTotal'],
        shipping_total=money['shippingTotal'],
        duty_total=money['dutyTotal'],
        total=total or 0,
        guest_count=_parse_guest_count(data.get('guestCount')),
        items=tuple(parse_item(item) for item in (data.get('items') or []) if isinstance(item, dict)),
        notes=data.get('notes') or None,
        ship_to=parse_address(data.get('shipTo')),
    )
