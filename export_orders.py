#!/usr/bin/env python3
"""
Find Commerce7 orders missing a guest count and export them to Excel
"""

import sys
import argparse
from io import BytesIO
from pathlib import Path
from typing import AbstractSet, List, Optional

from commerce7_client import Commerce7Client, FetchResult
from config import AppConfig
from date_utils import DateRange, build_date_range
from errors import EmptyResultError, GuestCountError
from excel_export import EXPORT_FILENAME, export_to_excel
from guest_count_filter import filter_missing_guest_count, list_associates, parse_associates, refine_orders
from logger_config import get_logger
from order_models import Order

logger = get_logger('export_orders')


class GuestCountExporter:
    def __init__(self, config: AppConfig, client: Optional[Commerce7Client] = None):
        """Initialize the exporter with configuration and a Commerce7 client"""
        self.config = config
        self.client = client or Commerce7Client(config)
        self.excluded_product_ids = config.excluded_product_ids

    def fetch_orders(self, date_range: DateRange) -> FetchResult:
        result = self.client.fetch_orders(date_range)
        logger.info(f"Fetched {result.total} orders in {result.pages_fetched} pages ({result.state.value})")
        return result

    def missing_guest_count_orders(self, date_range: DateRange) -> List[Order]:
        """
        Orders in the range that still need a guest count

        Raises:
            EmptyResultError: if Commerce7 has no orders at all for the range
        """
        result = self.fetch_orders(date_range)
        if not result.orders:
            raise EmptyResultError()

        filtered = filter_missing_guest_count(result.orders, self.excluded_product_ids)
        logger.info(f"{len(filtered)} of {result.total} orders are missing guest counts")
        return filtered

    def associates(self, date_range: DateRange) -> List[str]:
        return list_associates(self.missing_guest_count_orders(date_range))

    def export(self, date_range: DateRange, associates: Optional[AbstractSet[str]] = None,
               search: Optional[str] = None) -> BytesIO:
        """
        Build the guest count workbook for the range and optional refinements

        Raises:
            EmptyExportError: if no order survives filtering
        """
        result = self.fetch_orders(date_range)
        filtered = filter_missing_guest_count(result.orders, self.excluded_product_ids)
        refined = refine_orders(filtered, associates=associates, search=search)
        logger.info(f"Exporting {len(refined)} orders ({len(filtered)} before associate/search filters)")
        return export_to_excel(refined)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to handle command line arguments and run the export"""
    parser = argparse.ArgumentParser(description='Export Commerce7 orders missing guest counts to Excel')
    parser.add_argument('--from-date', type=str, help='Start of the paid date range (e.g. 2024-01-01)')
    parser.add_argument('--to-date', type=str, help='End of the paid date range (inclusive)')
    parser.add_argument('--associates', type=str, default='',
                        help='Comma separated sales associate names to keep (use "Unknown" for unassigned)')
    parser.add_argument('--search', type=str, default='', help='Only orders whose number contains this text')
    parser.add_argument('--output', type=str, default=f'data/{EXPORT_FILENAME}', help='Where to write the workbook')
    parser.add_argument('--env-file', type=str, help='Path to a .env file with Commerce7 credentials')

    args = parser.parse_args(argv)

    try:
        date_range = build_date_range(args.from_date, args.to_date)
        config = AppConfig.from_env(args.env_file)
        exporter = GuestCountExporter(config)

        print(f"Exporting orders missing guest counts from {date_range.start or '...'} to {date_range.end or '...'}")
        buffer = exporter.export(date_range, associates=parse_associates(args.associates), search=args.search)
    except GuestCountError as e:
        logger.error(f"Export failed: {e.message}")
        if e.detail is not None:
            logger.debug(f"Details: {e.detail}")
        print(f"❌ {e.message}")
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(buffer.getvalue())

    print(f"Export completed: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
