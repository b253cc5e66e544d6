#!/usr/bin/env python3
"""
HTTP service for the guest count check dashboard

Run locally with `python server.py`, or under gunicorn with
`gunicorn "server:create_app()"`.
"""

from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from auth import TokenVerifier
from commerce7_client import Commerce7Client
from config import AppConfig
from date_utils import build_date_range
from errors import FetchError, GuestCountError, UpstreamError
from excel_export import EXPORT_FILENAME, EXPORT_MIMETYPE
from export_orders import GuestCountExporter
from guest_count_filter import parse_associates, sort_orders
from logger_config import get_logger

logger = get_logger('server')


def _error_detail(config: AppConfig, error: GuestCountError) -> Any:
    """Upstream bodies and messages are only exposed outside production"""
    if config.is_production:
        return type(error).__name__
    if isinstance(error, FetchError):
        return {'page': error.page, 'body': error.body}
    return error.detail if error.detail is not None else error.message


def create_app(config: Optional[AppConfig] = None, client: Optional[Commerce7Client] = None,
               verifier: Optional[TokenVerifier] = None) -> Flask:
    """
    Build the Flask application

    Collaborators default to ones built from the environment; tests pass
    their own.
    """
    config = config or AppConfig.from_env()
    client = client or Commerce7Client(config)
    verifier = verifier or TokenVerifier(config)
    exporter = GuestCountExporter(config, client)

    app = Flask(__name__)

    def require_auth(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.identity = verifier.verify(request.headers.get('Authorization'))
            return view(*args, **kwargs)
        return wrapper

    @app.errorhandler(GuestCountError)
    def handle_guest_count_error(error: GuestCountError):
        if error.status_code >= 500:
            logger.error(f"{request.path} failed: {error.message} ({error.detail})")
        else:
            logger.warning(f"{request.path} rejected: {error.message}")
        return jsonify({'message': error.message, 'error': _error_detail(config, error)}), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unhandled error on {request.path}")
        detail = type(error).__name__ if config.is_production else str(error)
        return jsonify({'message': 'Internal server error', 'error': detail}), 500

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/orders', methods=['GET'])
    @require_auth
    def list_orders():
        date_range = build_date_range(request.args.get('from'), request.args.get('to'))
        orders = exporter.missing_guest_count_orders(date_range)

        sort_field = request.args.get('sort')
        if sort_field:
            orders = sort_orders(orders, sort_field, request.args.get('direction', 'asc'))

        return jsonify({
            'orders': [order.to_dict() for order in orders],
            'total': len(orders),
            'dateRange': date_range.as_dict(),
        })

    @app.route('/api/order/<order_id>', methods=['GET'])
    def order_detail(order_id: str):
        logger.info(f"Fetching details for order {order_id}")
        return jsonify(client.get_order(order_id))

    @app.route('/api/associates', methods=['GET'])
    def list_associates():
        date_range = build_date_range(request.args.get('from'), request.args.get('to'))
        associates = exporter.associates(date_range)
        return jsonify({
            'associates': associates,
            'total': len(associates),
            'dateRange': date_range.as_dict(),
        })

    @app.route('/export', methods=['GET'])
    @require_auth
    def export():
        date_range = build_date_range(request.args.get('from'), request.args.get('to'))
        buffer = exporter.export(
            date_range,
            associates=parse_associates(request.args.get('associates')),
            search=request.args.get('search'),
        )
        return send_file(buffer, as_attachment=True, download_name=EXPORT_FILENAME, mimetype=EXPORT_MIMETYPE)

    @app.route('/test-connection', methods=['GET'])
    def test_connection():
        try:
            order_count = client.test_connection()
        except UpstreamError as e:
            return jsonify({
                'success': False,
                'message': 'Commerce7 connection failed',
                'error': _error_detail(config, e),
            }), 500

        return jsonify({
            'success': True,
            'message': 'Commerce7 connection successful',
            'orderCount': order_count,
        })

    return app


if __name__ == "__main__":
    app_config = AppConfig.from_env()
    create_app(app_config).run(host='0.0.0.0', port=app_config.port)
