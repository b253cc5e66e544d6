#!/usr/bin/env python3
"""
Exception hierarchy for the guest count check service

Every error carries the HTTP status it maps to, so the web layer can turn
any of them into a JSON response without knowing where it came from.
"""

from typing import Any, Optional


class GuestCountError(Exception):
    """Base class for all errors raised by the pipeline"""

    status_code = 500
    default_message = 'Unexpected error'

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ConfigError(GuestCountError):
    """Required configuration is missing or malformed"""

    default_message = 'Invalid configuration'


class ValidationError(GuestCountError):
    status_code = 400
    default_message = 'Invalid request'


class InvalidDateError(ValidationError):
    default_message = 'Invalid date'

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f'Invalid date: {value!r}', detail=value)


class AuthError(GuestCountError):
    status_code = 401
    default_message = 'Unauthorized'


class NotFoundError(GuestCountError):
    status_code = 404
    default_message = 'Order not found'


class EmptyResultError(GuestCountError):
    status_code = 400
    default_message = 'No orders found for the selected date range.'


class EmptyExportError(EmptyResultError):
    default_message = 'No orders missing guest counts found.'


class UpstreamError(GuestCountError):
    """Transport failure or non-2xx response from the Commerce7 API"""

    default_message = 'Error communicating with Commerce7'

    def __init__(self, message: Optional[str] = None, detail: Any = None, status: Optional[int] = None):
        self.status = status
        super().__init__(message, detail=detail)


class FetchError(UpstreamError):
    """A page of the order listing could not be fetched"""

    default_message = 'Error fetching orders'

    def __init__(self, page: int, body: Any = None, status: Optional[int] = None):
        self.page = page
        self.body = body
        super().__init__(f'Error fetching orders (page {page})', detail=body, status=status)
