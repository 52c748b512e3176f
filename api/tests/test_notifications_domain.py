# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for flooding notification validation and payload building.
"""

import pytest

from domain.notifications import (
    to_storage_date, validate_submission, build_persistence_payload,
    interpret_persistence_response
)
from models.requests import REQUIRED_MESSAGE, COORDINATE_REQUIRED_MESSAGE


class TestStorageDate:
    """Test display to storage date conversion."""

    def test_christmas(self):
        assert to_storage_date("25/12/2024") == "2024-12-25"

    def test_leading_zeros(self):
        assert to_storage_date("05/01/2025") == "2025-01-05"

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            to_storage_date("31/02/2024")


class TestValidateSubmission:
    """Test per-field validation of a submitted form."""

    def test_valid_payload(self, valid_submission):
        result = validate_submission(valid_submission)

        assert result.is_valid is True
        assert result.request.zipcode == "01001000"
        assert result.request.address_number == 100
        assert result.errors == []

    def test_required_fields(self):
        result = validate_submission({})

        assert result.is_valid is False
        assert result.field_errors["date"] == REQUIRED_MESSAGE
        assert result.field_errors["street"] == REQUIRED_MESSAGE
        assert result.field_errors["district"] == REQUIRED_MESSAGE
        assert result.field_errors["city"] == REQUIRED_MESSAGE
        assert result.field_errors["state"] == REQUIRED_MESSAGE
        assert result.field_errors["latitude"] == COORDINATE_REQUIRED_MESSAGE
        assert result.field_errors["longitude"] == COORDINATE_REQUIRED_MESSAGE
        assert "zipcode" not in result.field_errors
        assert "complement" not in result.field_errors

    def test_blank_strings_count_as_missing(self, valid_submission):
        valid_submission.update({"street": "  ", "latitude": ""})

        result = validate_submission(valid_submission)

        assert result.field_errors["street"] == REQUIRED_MESSAGE
        assert result.field_errors["latitude"] == COORDINATE_REQUIRED_MESSAGE

    def test_zipcode_must_have_eight_digits(self, valid_submission):
        valid_submission["zipcode"] = "0100100"

        result = validate_submission(valid_submission)

        assert result.field_errors["zipcode"] == "CEP deve conter 8 dígitos!"

    def test_zipcode_keeps_leading_zero(self, valid_submission):
        valid_submission["zipcode"] = "01001-000"

        result = validate_submission(valid_submission)

        assert result.request.zipcode == "01001000"

    def test_address_number_is_numeric(self, valid_submission):
        valid_submission["addressNumber"] = "s/n"

        result = validate_submission(valid_submission)

        assert "addressNumber" in result.field_errors

    def test_invalid_date_format(self, valid_submission):
        valid_submission["date"] = "2024-12-25"

        result = validate_submission(valid_submission)

        assert result.field_errors["date"] == "Data inválida! Use o formato DD/MM/AAAA."

    def test_unknown_state(self, valid_submission):
        valid_submission["state"] = "XX"

        result = validate_submission(valid_submission)

        assert result.field_errors["state"] == "Selecione um estado válido!"

    def test_partial_limits_rejected(self, valid_submission):
        valid_submission["limitLatEnd"] = ""

        result = validate_submission(valid_submission)

        assert result.is_valid is False

    def test_no_limits_accepted(self, valid_submission):
        for key in ("limitLatStart", "limitLonStart", "limitLatEnd", "limitLonEnd"):
            valid_submission[key] = ""

        result = validate_submission(valid_submission)

        assert result.is_valid is True
        assert result.request.limit_lat_start is None

    def test_errors_list(self):
        result = validate_submission({"street": "Rua A"})

        assert {"field": "city", "message": REQUIRED_MESSAGE} in result.errors


class TestPersistencePayload:
    """Test the body sent to the persistence endpoint."""

    def test_payload_uses_form_names_and_storage_date(self, valid_submission):
        request = validate_submission(valid_submission).request

        payload = build_persistence_payload(request)

        assert payload["date"] == "2024-12-25"
        assert payload["zipcode"] == "01001000"
        assert payload["addressNumber"] == 100
        assert payload["limitLatStart"] == -23.5510
        assert payload["limitLonEnd"] == -46.6321
        assert payload["observation"] == "Água na altura do joelho"

    def test_only_created_is_success(self):
        assert interpret_persistence_response(201).success is True
        assert interpret_persistence_response(200).success is False
        assert interpret_persistence_response(500, {"error": "x"}).body == {"error": "x"}
