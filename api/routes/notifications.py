# SPDX-License-Identifier: Apache-2.0

"""
Flooding notification submission endpoint.

Accepts a complete form payload, validates it field by field and forwards
it to the persistence endpoint with the date in storage format.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from domain import notifications as notification_domain
from domain.form_state import SUCCESS_TOAST
from middleware.error_handler import ValidationException, UpstreamServiceError

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

notifications_tag = Tag(name="Flooding Notifications", description="Flooding notification submission")
notifications_bp = APIBlueprint(
    'flooding_notifications',
    __name__,
    url_prefix='/api/flooding-notifications',
    abp_tags=[notifications_tag]
)


@notifications_bp.post('')
def create_flooding_notification():
    """
    Submit a flooding notification.

    Validation errors are returned per field and the persistence endpoint
    is not called. Only a 201 from the endpoint counts as saved.
    """
    with tracer.start_as_current_span(
        "flooding_notification.create",
        attributes={"operation": "create_notification"}
    ) as span:
        request_data = request.get_json(silent=True)
        if not isinstance(request_data, dict):
            span.set_status(Status(StatusCode.ERROR, "Missing request body"))
            raise ValidationException("Missing request body")

        validation = notification_domain.validate_submission(request_data)
        if not validation.is_valid:
            span.set_status(Status(StatusCode.ERROR, "Validation failed"))
            logger.warning(
                "Flooding notification validation failed",
                extra={
                    "fields": sorted(validation.field_errors),
                    "payload_keys": list(request_data.keys())
                }
            )
            raise ValidationException("Verifique os campos do formulário", validation.errors)

        notification = validation.request
        span.set_attributes({
            "notification.city": notification.city,
            "notification.state": notification.state,
            "notification.has_limits": notification.limit_lat_start is not None
        })

        payload = notification_domain.build_persistence_payload(notification)
        result = current_app.notification_client.create(payload)

        if not result.success:
            span.set_status(Status(StatusCode.ERROR, "Persistence rejected notification"))
            raise UpstreamServiceError("notification-api", "Ocorreu um erro, tente novamente!")

        response = current_app.hal_formatter.builder.build_resource_response(
            {
                "notification": payload,
                "saved": result.body,
                "toast": SUCCESS_TOAST.model_dump()
            },
            "/api/flooding-notifications"
        )
        return jsonify(response), 201
