#!/usr/bin/env python3
"""
Bearer token verification against the external identity provider
"""

from typing import Any, Dict, Optional

import requests

from config import AppConfig
from errors import AuthError
from logger_config import get_logger

logger = get_logger('auth')

ANONYMOUS = {'sub': 'anonymous', 'auth': 'disabled'}


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an 'Authorization: Bearer <token>' header"""
    header = (authorization or '').strip()
    if not header.lower().startswith('bearer '):
        raise AuthError('Missing or invalid Authorization header')

    token = header[7:].strip()
    if not token:
        raise AuthError('Missing or invalid Authorization header')
    return token


class TokenVerifier:
    def __init__(self, config: AppConfig, session: Any = None):
        self.config = config
        self.userinfo_url = config.auth_userinfo_url
        self.session = session or requests

        if not config.auth_required:
            logger.warning("Bearer token verification is DISABLED (non-production only)")
        elif not self.userinfo_url:
            logger.warning("AUTH_USERINFO_URL is not set, protected endpoints will reject every request")

    def verify(self, authorization: Optional[str]) -> Dict[str, Any]:
        """
        Validate the caller's bearer token with the identity provider

        Returns:
            The identity payload returned by the provider

        Raises:
            AuthError: if the token is missing, rejected, or cannot be checked
        """
        if not self.config.auth_required:
            return dict(ANONYMOUS)

        token = extract_bearer_token(authorization)

        if not self.userinfo_url:
            raise AuthError('Authentication is not configured', detail='AUTH_USERINFO_URL is not set')

        try:
            response = self.session.get(
                self.userinfo_url,
                headers={'Authorization': f'Bearer {token}'},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise AuthError('Could not validate token', detail=str(e))

        if not response.ok:
            logger.warning(f"Identity provider rejected token ({response.status_code})")
            raise AuthError('Invalid or expired token', detail=response.status_code)

        try:
            identity = response.json()
        except ValueError:
            identity = {}
        return identity if isinstance(identity, dict) else {}
