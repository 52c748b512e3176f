"""
Alaga Help API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support,
configures middleware and wires the address resolution services used by
the flooding notification form.
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

from middleware.cors import configure_cors
from middleware.error_handler import ErrorHandlerMiddleware
from services.hal import create_hal_formatter
from services.redis import RedisService
from services.cep import CepService, DEFAULT_VIACEP_BASE_URL
from services.geocoding import NominatimGeocoder, DEFAULT_NOMINATIM_BASE_URL, DEFAULT_USER_AGENT
from services.notification_api import NotificationPersistenceClient
from services.form_sessions import FormSessionManager
from services.health import HealthCheckService, SERVICE_NAME, SERVICE_VERSION

# OpenAPI info
info = Info(
    title="Alaga Help API",
    version=SERVICE_VERSION,
    description="Flooding notification API: postal-code lookup, geocoding and form submission"
)

# API tags for organization
tags = [
    Tag(name="Address", description="Postal-code lookup and geocoding"),
    Tag(name="Form Sessions", description="Server-side flooding notification form state"),
    Tag(name="Flooding Notifications", description="Flooding notification submission"),
    Tag(name="Navigation", description="Dashboard sidebar and breadcrumbs"),
    Tag(name="Health", description="System health and status")
]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read the application configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': _env_flag('DOCS_ENABLED', 'true'),
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED', 'true'),
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
        'CORS_ALLOWED_ORIGINS': os.getenv('CORS_ALLOWED_ORIGINS', ''),

        # Upstream services
        'VIACEP_BASE_URL': os.getenv('VIACEP_BASE_URL', DEFAULT_VIACEP_BASE_URL),
        'NOMINATIM_BASE_URL': os.getenv('NOMINATIM_BASE_URL', DEFAULT_NOMINATIM_BASE_URL),
        'NOMINATIM_USER_AGENT': os.getenv('NOMINATIM_USER_AGENT', DEFAULT_USER_AGENT),
        'NOTIFICATION_API_URL': os.getenv('NOTIFICATION_API_URL', ''),
        'NOTIFICATION_API_TOKEN': os.getenv('NOTIFICATION_API_TOKEN', ''),
        'HTTP_TIMEOUT_SECONDS': float(os.getenv('HTTP_TIMEOUT_SECONDS', '10')),

        # Form pipeline
        'DEBOUNCE_DELAY_MS': int(os.getenv('DEBOUNCE_DELAY_MS', '500')),
        'FORM_SESSION_TTL_SECONDS': int(os.getenv('FORM_SESSION_TTL_SECONDS', '1800')),

        # Lookup cache
        'REDIS_URL': os.getenv('REDIS_URL', ''),
        'CACHE_TTL_SECONDS': int(os.getenv('CACHE_TTL_SECONDS', '86400')),
    }


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> OpenAPI:
    """
    Build the Flask application.

    Args:
        config_overrides: Values replacing the environment configuration,
            including pre-built services (``CEP_SERVICE``, ``GEOCODER``,
            ``NOTIFICATION_CLIENT``, ``TIMER_FACTORY``, ``SESSION_CLOCK``) for tests

    Returns:
        Configured OpenAPI application
    """
    config = load_config()
    config.update(config_overrides or {})

    # Initialize observability first
    otel_active = setup_observability(config['ENVIRONMENT'], config['OTEL_ENABLED'])

    app = OpenAPI(__name__, info=info, tags=tags, doc_ui=config['DOCS_ENABLED'])
    app.config.update(config)

    add_observability_middleware(app, instrument=otel_active)

    # Initialize services
    redis_service = None
    if config['REDIS_URL']:
        redis_service = RedisService(config['REDIS_URL'], config['CACHE_TTL_SECONDS'])

    timeout = config['HTTP_TIMEOUT_SECONDS']
    cep_service = config.get('CEP_SERVICE') or CepService(
        config['VIACEP_BASE_URL'],
        timeout=timeout,
        cache=redis_service
    )
    geocoder = config.get('GEOCODER') or NominatimGeocoder(
        config['NOMINATIM_BASE_URL'],
        user_agent=config['NOMINATIM_USER_AGENT'],
        timeout=timeout,
        cache=redis_service
    )
    notification_client = config.get('NOTIFICATION_CLIENT') or NotificationPersistenceClient(
        config['NOTIFICATION_API_URL'],
        token=config['NOTIFICATION_API_TOKEN'],
        timeout=timeout
    )

    session_options = {}
    if config.get('TIMER_FACTORY') is not None:
        session_options['timer_factory'] = config['TIMER_FACTORY']
    if config.get('SESSION_CLOCK') is not None:
        session_options['clock'] = config['SESSION_CLOCK']
    form_sessions = FormSessionManager(
        cep_service,
        geocoder,
        delay_seconds=config['DEBOUNCE_DELAY_MS'] / 1000.0,
        idle_ttl_seconds=config['FORM_SESSION_TTL_SECONDS'],
        **session_options
    )

    health_service = HealthCheckService(redis_service, app.config)

    # Problem details for every error
    hal_formatter = create_hal_formatter(config['BASE_URL'])
    ErrorHandlerMiddleware(app, hal_formatter)

    # Configure CORS for the form client
    configure_cors(app, config['ENVIRONMENT'], config['CORS_ALLOWED_ORIGINS'])

    # Make services available to routes
    app.redis_service = redis_service
    app.cep_service = cep_service
    app.geocoder = geocoder
    app.notification_client = notification_client
    app.form_sessions = form_sessions
    app.health_service = health_service
    app.hal_formatter = hal_formatter

    # Register routes
    from routes.address import address_bp
    from routes.form_sessions import form_sessions_bp
    from routes.notifications import notifications_bp
    from routes.navigation import navigation_bp

    app.register_api(address_bp)
    app.register_api(form_sessions_bp)
    app.register_api(notifications_bp)
    app.register_api(navigation_bp)

    _register_system_routes(app)

    return app


def _register_system_routes(app: OpenAPI) -> None:
    health_tag = Tag(name="Health", description="System health and status")

    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Health check with dependency and process metrics"""
        health_data = app.health_service.get_comprehensive_health()

        # Degraded is still operational
        status_code = 503 if health_data["status"] == "unhealthy" else 200

        health_response = app.hal_formatter.builder.build_resource_response(health_data, "/api/healthz")
        return jsonify(health_response), status_code

    @app.get('/api/status', tags=[health_tag])
    def system_status():
        """Detailed system status"""
        health_service = app.health_service
        status_data = {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": app.config['ENVIRONMENT'],
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "uptime": health_service.get_application_uptime(),
            "configuration": health_service.get_configuration_status(),
            "feature_flags": health_service.get_feature_flags(),
            "openapi_status": _get_openapi_status(app),
            "active_form_sessions": len(app.form_sessions)
        }

        status_response = app.hal_formatter.builder.build_resource_response(status_data, "/api/status")
        return jsonify(status_response), 200


def _get_openapi_status(app: OpenAPI) -> Dict[str, Any]:
    """Get OpenAPI documentation endpoints."""
    docs_enabled = app.config.get('DOCS_ENABLED', False)
    return {
        "spec_endpoint": "/openapi/openapi.json",
        "docs_endpoint": "/openapi/swagger" if docs_enabled else None,
        "redoc_endpoint": "/openapi/redoc" if docs_enabled else None
    }


app = create_app()


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
