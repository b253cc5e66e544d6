#!/usr/bin/env python3
"""
Date normalization for Commerce7 date-range queries
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import pandas as pd

from errors import InvalidDateError, ValidationError

CANONICAL_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def normalize_date(value: Any) -> str:
    """
    Convert a user supplied date into the YYYY-MM-DD form Commerce7 expects

    Canonical input is returned unchanged so a date is never shifted twice.
    Anything else is parsed into an instant and rendered with UTC calendar
    components; input without an offset is read as UTC.

    Raises:
        InvalidDateError: if the value does not parse to a valid instant
    """
    text = str(value).strip() if value is not None else ''
    if not text:
        raise InvalidDateError(value)

    if CANONICAL_DATE.match(text):
        try:
            datetime.strptime(text, '%Y-%m-%d')
        except ValueError:
            raise InvalidDateError(value)
        return text

    try:
        timestamp = pd.to_datetime(text, utc=True)
    except (ValueError, TypeError, OverflowError):
        raise InvalidDateError(value)

    if pd.isna(timestamp):
        raise InvalidDateError(value)

    return timestamp.strftime('%Y-%m-%d')


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of paid dates, at least one bound present"""

    start: Optional[str] = None
    end: Optional[str] = None

    def paid_date_filter(self) -> str:
        """Render the orderPaidDate predicate for the order listing"""
        if self.start and self.end:
            return f'btw:{self.start}|{self.end}'
        if self.start:
            return f'gte:{self.start}'
        return f'lte:{self.end}'

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {'from': self.start, 'to': self.end}


def build_date_range(date_from: Any = None, date_to: Any = None) -> DateRange:
    """
    Validate and normalize the from/to query values

    Raises:
        ValidationError: if neither bound was supplied
        InvalidDateError: if a supplied bound does not parse
    """
    has_from = date_from is not None and str(date_from).strip() != ''
    has_to = date_to is not None and str(date_to).strip() != ''

    if not has_from and not has_to:
        raise ValidationError('At least one date is required.')

    start = normalize_date(date_from) if has_from else None
    end = normalize_date(date_to) if has_to else None
    return DateRange(start=start, end=end)
