# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Application exceptions and their rendering as problem details.

Every error leaving the API, whether raised by Werkzeug, by the routes or
by an upstream client, is answered with an RFC 7807 body carrying HAL
links. 4xx responses are logged at WARNING, 5xx at ERROR.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Any, Dict, List, Optional
from opentelemetry import trace
import logging

from services.hal import HalFormatter, PROBLEM_TYPES

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PRODUCTION_DETAIL = "An internal server error occurred"


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type

    @property
    def validation_errors(self) -> Optional[List[Dict[str, Any]]]:
        return None


class ValidationException(CustomException):
    """Request or form values failed validation; errors are per field."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self._validation_errors = validation_errors or []

    @property
    def validation_errors(self) -> List[Dict[str, Any]]:
        return self._validation_errors


class NotFoundException(CustomException):
    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class AddressNotFoundError(NotFoundException):
    """The postal-code service knows no address for a CEP."""

    def __init__(self, cep: str):
        super().__init__(f"Endereço não encontrado para o CEP {cep}")
        self.cep = cep


class ConflictException(CustomException):
    """The resource is busy, e.g. a form submitted while resolving."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class UpstreamServiceError(CustomException):
    """An external service failed or answered with garbage."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}", 502, "bad-gateway")
        self.service = service


class ServiceUnavailableException(CustomException):
    """A required collaborator is not configured."""

    def __init__(self, message: str):
        super().__init__(message, 503, "service-unavailable")


class ErrorHandlerMiddleware:
    """Registers Flask error handlers that answer with problem details."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register handlers for HTTP statuses, application exceptions and the rest."""
        for status in PROBLEM_TYPES:
            self.app.register_error_handler(status, self.handle_http_error)
        self.app.register_error_handler(CustomException, self.handle_application_error)
        self.app.register_error_handler(Exception, self.handle_unexpected_error)

    @property
    def hide_details(self) -> bool:
        return self.app.config.get('ENVIRONMENT') == 'production'

    def _log(self, status: int, message: str, error_type: str, detail: str, exc_info: bool = False):
        log = logger.error if status >= 500 else logger.warning
        log(
            message,
            extra={
                "error_type": error_type,
                "status_code": status,
                "detail": detail,
                "path": request.path,
                "method": request.method,
                "user_agent": request.headers.get('User-Agent')
            },
            exc_info=exc_info
        )

    def handle_http_error(self, error: HTTPException):
        """Werkzeug errors such as unknown routes or disallowed methods."""
        if not isinstance(error, HTTPException) or error.code is None:
            return self.handle_unexpected_error(error)

        error_type, title = PROBLEM_TYPES.get(error.code, ("http-error", error.name))
        with tracer.start_as_current_span("error_handler.http_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title
            self._log(error.code, f"HTTP error: {title}", error_type, detail, exc_info=error.code >= 500)

            if error.code >= 500 and self.hide_details:
                detail = PRODUCTION_DETAIL

            body = self.hal_formatter.format_problem(
                error.code, detail, request.path, error_type=error_type, title=title
            )
            return jsonify(body), error.code

    def handle_application_error(self, error: CustomException):
        """Exceptions raised deliberately by routes and services."""
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            self._log(error.status_code, f"Application error: {error.error_type}", error.error_type, error.message)

            body = self.hal_formatter.format_problem(
                error.status_code,
                error.message,
                request.path,
                validation_errors=error.validation_errors,
                error_type=error.error_type
            )
            return jsonify(body), error.status_code

    def handle_unexpected_error(self, error: Exception):
        """Anything else is a 500; the class and message are shown outside production."""
        if isinstance(error, HTTPException):
            return self.handle_http_error(error)

        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            detail = f"{error.__class__.__name__}: {str(error)}"
            self._log(500, f"Unexpected error: {error.__class__.__name__}", "unexpected-error", detail, exc_info=True)

            if self.hide_details:
                detail = "An unexpected error occurred"

            return jsonify(self.hal_formatter.format_problem(500, detail, request.path)), 500
