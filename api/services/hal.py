# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Adds affordance links to form sessions and RFC 7807 error bodies.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from models.responses import HalLink
from models.entities import FormState

PROBLEM_BASE_URI = "https://api.alagahelp.org/problems"

# Problem type and title per HTTP status
PROBLEM_TYPES = {
    400: ("bad-request", "Bad Request"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    422: ("validation-error", "Validation Error"),
    500: ("internal-server-error", "Internal Server Error"),
    502: ("bad-gateway", "Bad Gateway"),
    503: ("service-unavailable", "Service Unavailable"),
    504: ("gateway-timeout", "Gateway Timeout")
}
PROBLEM_TITLES = dict(PROBLEM_TYPES.values())


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_action_link(
        self,
        resource_path: str,
        action: str,
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource."""
        action_path = f"{resource_path}/{action}"
        return self.build_link(
            action_path,
            method=method,
            content_type="application/json",
            title=title or action.title()
        )


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on form state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_form_session_affordances(self, session_id: str, state: FormState) -> Dict[str, HalLink]:
        """Links the form client may follow from the current state."""
        links = {}
        base_path = f"/api/form-sessions/{session_id}"

        links['self'] = self.link_builder.build_self_link(base_path)

        links['zipcode'] = self.link_builder.build_action_link(
            base_path, "zipcode", method="PUT", title="Update postal code"
        )
        links['point'] = self.link_builder.build_action_link(
            base_path, "point", title="Select point on map"
        )
        links['edit'] = self.link_builder.build_link(
            base_path,
            method="PATCH",
            content_type="application/json",
            title="Edit form fields"
        )

        if state.advisory is not None:
            links['dismiss_advisory'] = self.link_builder.build_action_link(
                base_path, "advisory/dismiss", title="Dismiss advisory"
            )

        # Submission is locked while an address is being resolved and once saved
        if not state.searching and not state.submitted:
            links['submit'] = self.link_builder.build_action_link(
                base_path, "submit", title="Submit notification"
            )

        return links


class HalResponseBuilder:
    """Main HAL response builder."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    def build_resource_response(
        self,
        data: Dict[str, Any],
        resource_path: str,
        extra_links: Optional[Dict[str, HalLink]] = None
    ) -> Dict[str, Any]:
        """Build a HAL resource response with a self link and optional extras."""
        response = dict(data)
        links = {'self': self.link_builder.build_self_link(resource_path)}
        if extra_links:
            links.update(extra_links)
        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE_URI}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )

        error_response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_form_session(self, session_id: str, state: FormState) -> Dict[str, Any]:
        """Format a form session snapshot with its affordances."""
        data = state.model_dump(by_alias=True, mode='json')
        data['id'] = session_id
        data['advisoryOpen'] = state.advisory_open
        links = self.builder.affordance_builder.build_form_session_affordances(session_id, state)
        response = dict(data)
        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def format_problem(
        self,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        error_type: Optional[str] = None,
        title: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format a problem details body for an HTTP status.

        The problem type and title come from ``PROBLEM_TYPES`` unless given.
        """
        default_type, default_title = PROBLEM_TYPES.get(status, ("application-error", "Application Error"))
        error_type = error_type or default_type
        return self.builder.build_error_response(
            error_type,
            title or PROBLEM_TITLES.get(error_type, default_title),
            status,
            detail,
            instance,
            validation_errors
        )


def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
