#!/usr/bin/env python3
"""
Configuration for the guest count check service

Everything is read once from the environment (and an optional .env file)
into a frozen AppConfig that is handed to the client, the verifier and the
web app at construction time.
"""

import os
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional

from dotenv import load_dotenv

from errors import ConfigError
from logger_config import get_logger

logger = get_logger('config')

DEFAULT_API_URL = 'https://api.commerce7.com/v1'
DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 100
DEFAULT_PAGE_DELAY = 0.5  # seconds between page requests
DEFAULT_TIMEOUT = 30.0
DEFAULT_PORT = 8080

REQUIRED_ENV_VARS = ('C7_APP_ID', 'C7_API_KEY', 'C7_TENANT_ID')

# Products whose presence on an order exempts it from needing a guest count.
# Unconfirmed whether this list is exhaustive; EXCLUDED_PRODUCTS_FILE replaces
# it and EXCLUDED_PRODUCT_IDS extends it.
DEFAULT_EXCLUDED_PRODUCTS = {
    'NCG': 'fe778da9-5164-4688-acd2-98d044d7ce84',
    'Trade Guest': '718b9fbb-4e23-48c7-8b2d-da86d2624b36',
    'Club Member': '75d4f6cf-cf69-4e76-8f3b-bb35cc7ddeb3',
}

_TRUTHY = {'1', 'true', 'yes', 'on'}


def _is_truthy(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in _TRUTHY


def load_excluded_products(path: Optional[str] = None, extra_ids: Optional[str] = None) -> Dict[str, str]:
    """
    Build the label -> product id mapping of exempt products

    Args:
        path: JSON file with a {label: productId} object replacing the defaults
        extra_ids: Comma separated product ids added on top

    Returns:
        Mapping of label to product id
    """
    if path:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                products = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f'Could not read excluded products file {path}: {e}')
        if not isinstance(products, dict):
            raise ConfigError(f'Excluded products file {path} must contain a JSON object')
        products = {str(label): str(product_id) for label, product_id in products.items()}
        logger.info(f"Loaded {len(products)} excluded products from {path}")
    else:
        products = dict(DEFAULT_EXCLUDED_PRODUCTS)

    if extra_ids:
        for product_id in extra_ids.split(','):
            product_id = product_id.strip()
            if product_id and product_id not in products.values():
                products[product_id] = product_id

    return products


@dataclass(frozen=True)
class AppConfig:
    """Immutable runtime configuration"""

    app_id: str
    api_key: str
    tenant_id: str
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    page_delay: float = DEFAULT_PAGE_DELAY
    environment: str = 'development'
    port: int = DEFAULT_PORT
    auth_userinfo_url: Optional[str] = None
    auth_disabled: bool = False
    excluded_products: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_EXCLUDED_PRODUCTS))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == 'production'

    @property
    def excluded_product_ids(self) -> FrozenSet[str]:
        return frozenset(self.excluded_products.values())

    @property
    def auth_required(self) -> bool:
        # Disabling auth is only honoured outside production
        return not (self.auth_disabled and not self.is_production)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'AppConfig':
        """
        Load configuration from environment variables

        Args:
            env_file: Optional path to a .env file (defaults to ./.env when present)

        Raises:
            ConfigError: if a required variable is missing or a number is malformed
        """
        if env_file:
            load_dotenv(dotenv_path=Path(env_file))
        else:
            load_dotenv()

        missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
        if missing:
            logger.error(f"Missing required environment variables: {', '.join(missing)}")
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            timeout = float(os.getenv('C7_TIMEOUT', DEFAULT_TIMEOUT))
            port = int(os.getenv('PORT', DEFAULT_PORT))
        except ValueError as e:
            raise ConfigError(f'Malformed numeric setting: {e}')

        config = cls(
            app_id=os.environ['C7_APP_ID'],
            api_key=os.environ['C7_API_KEY'],
            tenant_id=os.environ['C7_TENANT_ID'],
            api_url=os.getenv('C7_API_URL', DEFAULT_API_URL).rstrip('/'),
            timeout=timeout,
            environment=os.getenv('APP_ENV') or os.getenv('NODE_ENV') or 'development',
            port=port,
            auth_userinfo_url=os.getenv('AUTH_USERINFO_URL') or None,
            auth_disabled=_is_truthy(os.getenv('AUTH_DISABLED')),
            excluded_products=load_excluded_products(
                os.getenv('EXCLUDED_PRODUCTS_FILE'),
                os.getenv('EXCLUDED_PRODUCT_IDS'),
            ),
        )

        logger.info(f"Configuration loaded for tenant {config.tenant_id} ({config.environment})")
        return config
