#!/usr/bin/env python3
"""
Commerce7 REST API client: paginated order listing, order detail lookup
and a connectivity check
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

from config import AppConfig
from date_utils import DateRange
from errors import FetchError, NotFoundError, UpstreamError, ValidationError
from logger_config import get_logger
from order_models import Order, parse_order

logger = get_logger('commerce7_client')


class PaginationState(Enum):
    FETCHING = 'fetching'
    LAST_PAGE_REACHED = 'last_page_reached'
    SAFETY_LIMIT_REACHED = 'safety_limit_reached'
    FAILED = 'failed'


@dataclass(frozen=True)
class FetchResult:
    orders: Tuple[Order, ...]
    pages_fetched: int
    state: PaginationState

    @property
    def total(self) -> int:
        return len(self.orders)


def _error_body(response: requests.Response) -> Any:
    """Best effort extraction of the upstream error payload"""
    try:
        return response.json()
    except ValueError:
        return response.text


class Commerce7Client:
    def __init__(self, config: AppConfig, session: Any = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the client with the tenant credentials from config

        Calls go through the requests module by default so each request opens
        its own connection; session only needs a requests-style get().
        """
        self.config = config
        self.base_url = config.api_url.rstrip('/')
        self.auth = HTTPBasicAuth(config.app_id, config.api_key)
        self.headers = {
            'Tenant': config.tenant_id,
            'Content-Type': 'application/json',
        }
        self.session = session or requests
        self._sleep = sleep

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        return self.session.get(
            url,
            params=params,
            auth=self.auth,
            headers=self.headers,
            timeout=self.config.timeout,
        )

    def fetch_order_page(self, date_range: DateRange, page: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of orders paid within the date range

        Raises:
            FetchError: on transport failure, non-2xx status or a body without 'orders'
        """
        params = {
            'orderPaidDate': date_range.paid_date_filter(),
            'page': page,
            'limit': self.config.page_size,
        }

        try:
            response = self._get('order', params=params)
        except requests.RequestException as e:
            logger.error(f"Transport error fetching page {page}: {e}")
            raise FetchError(page, body=str(e))

        if not response.ok:
            body = _error_body(response)
            logger.error(f"Commerce7 returned {response.status_code} for page {page}: {body}")
            raise FetchError(page, body=body, status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise FetchError(page, body='Invalid JSON in Commerce7 response', status=response.status_code)

        orders = data.get('orders') if isinstance(data, dict) else None
        if orders is None:
            raise FetchError(page, body="Invalid response from Commerce7 API: Missing 'orders' field",
                             status=response.status_code)
        if not isinstance(orders, list):
            raise FetchError(page, body="Invalid response from Commerce7 API: 'orders' is not a list",
                             status=response.status_code)

        return orders

    def fetch_orders(self, date_range: DateRange) -> FetchResult:
        """
        Fetch every order paid within the date range, page by page

        Pages are requested one after another with a fixed delay in between.
        The loop ends on a short page or after max_pages pages; any failed
        page aborts the whole fetch.
        """
        page_size = self.config.page_size
        max_pages = self.config.max_pages
        all_orders: List[Order] = []
        page = 1
        state = PaginationState.FETCHING

        logger.info(f"Fetching orders with orderPaidDate={date_range.paid_date_filter()}")

        while state is PaginationState.FETCHING:
            if page > 1:
                self._sleep(self.config.page_delay)

            try:
                raw_orders = self.fetch_order_page(date_range, page)
            except FetchError:
                state = PaginationState.FAILED
                logger.error(f"Aborting order fetch at page {page} ({len(all_orders)} orders discarded)")
                raise

            for raw in raw_orders:
                if not isinstance(raw, dict):
                    state = PaginationState.FAILED
                    logger.error(f"Malformed order on page {page}: {raw!r}")
                    raise FetchError(page, body=f"Invalid order entry in Commerce7 response: {raw!r}")
                all_orders.append(parse_order(raw))
            logger.info(f"Fetched page {page}: {len(raw_orders)} orders (total: {len(all_orders)})")

            if len(raw_orders) < page_size:
                state = PaginationState.LAST_PAGE_REACHED
            elif page >= max_pages:
                state = PaginationState.SAFETY_LIMIT_REACHED
                logger.warning(f"Reached safety limit of {max_pages} pages, stopping with {len(all_orders)} orders")
            else:
                page += 1

        return FetchResult(orders=tuple(all_orders), pages_fetched=page, state=state)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Fetch a single order, returned exactly as Commerce7 sends it

        Raises:
            ValidationError: if order_id is blank
            NotFoundError: if Commerce7 reports the order missing
            UpstreamError: on any other failure
        """
        if not order_id or not str(order_id).strip():
            raise ValidationError('Order id is required.')

        try:
            response = self._get(f'order/{order_id}')
        except requests.RequestException as e:
            logger.error(f"Transport error fetching order {order_id}: {e}")
            raise UpstreamError('Error fetching order details', detail=str(e))

        if response.status_code == 404:
            logger.warning(f"Order {order_id} not found")
            raise NotFoundError(f'Order {order_id} not found', detail=_error_body(response))

        if not response.ok:
            body = _error_body(response)
            logger.error(f"Commerce7 returned {response.status_code} for order {order_id}: {body}")
            raise UpstreamError('Error fetching order details', detail=body, status=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise UpstreamError('Error fetching order details', detail='Invalid JSON in Commerce7 response',
                                status=response.status_code)

    def test_connection(self) -> int:
        """Request a single order to prove credentials and tenant work; returns orders seen"""
        logger.info("Testing Commerce7 connection...")
        try:
            response = self._get('order', params={'limit': 1})
        except requests.RequestException as e:
            logger.error(f"Commerce7 connection test failed: {e}")
            raise UpstreamError('Commerce7 connection failed', detail=str(e))

        if not response.ok:
            body = _error_body(response)
            logger.error(f"Commerce7 connection test failed: {body}")
            raise UpstreamError('Commerce7 connection failed', detail=body, status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError('Commerce7 connection failed', detail='Invalid JSON in Commerce7 response')

        return len(data.get('orders') or []) if isinstance(data, dict) else 0
