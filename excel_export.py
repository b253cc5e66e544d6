#!/usr/bin/env python3
"""
Excel export of orders missing guest counts
"""

from io import BytesIO
from typing import Any, Dict, Iterable, List

import pandas as pd

from errors import EmptyExportError
from logger_config import get_logger
from order_models import Order

logger = get_logger('excel_export')

EXPORT_FILENAME = 'guest_count_report.xlsx'
EXPORT_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
SHEET_NAME = 'Missing Guest Counts'
MISSING_GUEST_COUNT = 'Missing'

COLUMNS = ['Order Number', 'Sales Associate', 'Order Date', 'Total', 'Guest Count']


def flatten_order(order: Order) -> Dict[str, Any]:
    """Project an order onto one spreadsheet row"""
    return {
        'Order Number': order.order_number,
        'Sales Associate': order.associate_name,
        'Order Date': order.effective_day or '',
        'Total': round(order.total / 100, 2),
        'Guest Count': order.guest_count or MISSING_GUEST_COUNT,
    }


def build_export_rows(orders: Iterable[Order]) -> List[Dict[str, Any]]:
    return [flatten_order(order) for order in orders]


def export_to_excel(orders: Iterable[Order]) -> BytesIO:
    """
    Serialize orders into an in-memory single sheet xlsx workbook

    Raises:
        EmptyExportError: if there is nothing to export
    """
    rows = build_export_rows(orders)
    if not rows:
        raise EmptyExportError()

    df = pd.DataFrame(rows, columns=COLUMNS)

    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
    buffer.seek(0)

    logger.info(f"Exported {len(df)} orders to {EXPORT_FILENAME}")
    return buffer
