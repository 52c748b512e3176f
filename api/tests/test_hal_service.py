# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for HAL response formatting utilities.
"""

from services.hal import (
    HalLinkBuilder, AffordanceLinkBuilder, HalResponseBuilder, HalFormatter,
    create_hal_formatter
)
from models.responses import HalLink
from models.entities import FormState, Advisory


class TestHalLinkBuilder:
    """Test HAL link builder functionality."""

    def test_build_basic_link(self):
        """Test building a basic HAL link."""
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link("/api/address/01001000")

        assert isinstance(link, HalLink)
        assert link.href == "https://api.example.com/api/address/01001000"
        assert link.method == "GET"
        assert link.type is None

    def test_build_action_link(self):
        """Test building an action link."""
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_action_link("/api/form-sessions/abc", "submit")

        assert link.href == "https://api.example.com/api/form-sessions/abc/submit"
        assert link.method == "POST"
        assert link.type == "application/json"
        assert link.title == "Submit"

    def test_base_url_normalization(self):
        """Test that base URL is properly normalized."""
        builder = HalLinkBuilder("https://api.example.com/")

        link = builder.build_link("/api/healthz")

        assert link.href == "https://api.example.com/api/healthz"


class TestAffordanceLinkBuilder:
    """Form session links depend on the form state."""

    def setup_method(self):
        self.builder = AffordanceLinkBuilder("https://api.example.com")

    def test_idle_form(self):
        links = self.builder.build_form_session_affordances("abc", FormState())

        assert set(links) == {"self", "zipcode", "point", "edit", "submit"}
        assert links["zipcode"].method == "PUT"
        assert links["edit"].method == "PATCH"

    def test_searching_form_cannot_submit(self):
        links = self.builder.build_form_session_affordances("abc", FormState(searching=True))

        assert "submit" not in links

    def test_submitted_form_cannot_submit_again(self):
        links = self.builder.build_form_session_affordances("abc", FormState(submitted=True))

        assert "submit" not in links
        assert "edit" in links

    def test_open_advisory_can_be_dismissed(self):
        state = FormState(advisory=Advisory(title="t", message="m"))

        links = self.builder.build_form_session_affordances("abc", state)

        assert links["dismiss_advisory"].href.endswith("/api/form-sessions/abc/advisory/dismiss")


class TestHalResponseBuilder:
    """Test HAL response builder functionality."""

    def test_build_resource_response(self):
        builder = HalResponseBuilder("https://api.example.com")

        response = builder.build_resource_response(
            {"street": "Praça da Sé"},
            "/api/address/01001000",
            {"coordinates": builder.link_builder.build_link("/api/address/coordinates", method="POST")}
        )

        assert response["street"] == "Praça da Sé"
        assert response["_links"]["self"]["href"] == "https://api.example.com/api/address/01001000"
        assert response["_links"]["coordinates"]["method"] == "POST"
        # None fields are left out of links
        assert "type" not in response["_links"]["self"]

    def test_build_error_response(self):
        """Test building an error response."""
        builder = HalResponseBuilder("https://api.example.com")

        response = builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            "Request validation failed",
            "/api/flooding-notifications",
            [{"field": "city", "message": "Campo obrigatório!"}]
        )

        assert response["type"] == "https://api.alagahelp.org/problems/validation-error"
        assert response["title"] == "Validation Error"
        assert response["status"] == 400
        assert response["instance"] == "/api/flooding-notifications"
        assert response["errors"] == [{"field": "city", "message": "Campo obrigatório!"}]
        assert "help" in response["_links"]
        assert "schema" in response["_links"]


class TestHalFormatter:
    """Test HAL formatter functionality."""

    def test_format_form_session(self):
        formatter = create_hal_formatter("https://api.example.com")

        result = formatter.format_form_session("abc", FormState(zipcode="01001000"))

        assert result["id"] == "abc"
        assert result["zipcode"] == "01001000"
        assert result["advisoryOpen"] is False
        assert "addressNumber" in result
        assert "submit" in result["_links"]

    def test_problem_types(self):
        formatter = HalFormatter("https://api.example.com")

        not_found = formatter.format_problem(404, "x", "/p")
        upstream = formatter.format_problem(502, "viacep: timeout", "/p")

        assert not_found["type"].endswith("/resource-not-found")
        assert not_found["title"] == "Resource Not Found"
        assert "schema" not in not_found["_links"]
        assert upstream["title"] == "Bad Gateway"
        assert formatter.format_problem(418, "x", "/p")["type"].endswith("/application-error")

    def test_problem_type_override(self):
        formatter = HalFormatter("https://api.example.com")

        problem = formatter.format_problem(400, "x", "/p", [{"field": "city"}], error_type="validation-error")

        assert problem["title"] == "Validation Error"
        assert problem["errors"] == [{"field": "city"}]
        assert "schema" in problem["_links"]
