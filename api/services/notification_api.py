# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Client for the flooding notification persistence endpoint.
"""

from typing import Any, Dict, Optional
import logging
import requests
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from domain.notifications import SubmissionResult, interpret_persistence_response
from middleware.error_handler import ServiceUnavailableException, UpstreamServiceError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

SERVICE_NAME = "notification-api"


class NotificationPersistenceClient:
    """Posts validated notifications to the configured persistence URL."""

    def __init__(
        self,
        url: Optional[str],
        token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def create(self, payload: Dict[str, Any]) -> SubmissionResult:
        """
        Send one notification.

        Any status other than 201 is reported as a failed submission.

        Raises:
            ServiceUnavailableException: no persistence URL configured
            UpstreamServiceError: the endpoint could not be reached
        """
        if not self.configured:
            raise ServiceUnavailableException("Notification persistence endpoint is not configured")

        with tracer.start_as_current_span("notification_api.create") as span:
            try:
                response = self.session.post(
                    self.url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout
                )
            except requests.RequestException as e:
                span.set_status(Status(StatusCode.ERROR, "Persistence request failed"))
                logger.error("Notification persistence request failed", extra={"error": str(e)})
                raise UpstreamServiceError(SERVICE_NAME, "Falha ao salvar a notificação") from e

            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict):
                body = None

            result = interpret_persistence_response(response.status_code, body)
            span.set_attributes({
                "http.status_code": response.status_code,
                "notification.saved": result.success
            })

            if result.success:
                logger.info("Flooding notification saved", extra={"status_code": response.status_code})
            else:
                span.set_status(Status(StatusCode.ERROR, "Persistence rejected notification"))
                logger.warning(
                    "Flooding notification not saved",
                    extra={"status_code": response.status_code}
                )
            return result
