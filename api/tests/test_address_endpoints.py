# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the address lookup and coordinate resolution endpoints.
"""

from middleware.error_handler import AddressNotFoundError, UpstreamServiceError, ValidationException
from domain.address_resolution import COORDINATE_ERROR_MESSAGE, NOT_FOUND_TITLE


class TestLookupAddress:
    """GET /api/address/<cep>"""

    def test_lookup(self, client, mock_cep_service, se_address):
        mock_cep_service.lookup.return_value = se_address

        response = client.get('/api/address/01001-000')

        assert response.status_code == 200
        data = response.get_json()
        assert data["street"] == "Praça da Sé"
        assert data["state"] == "SP"
        assert data["_links"]["coordinates"]["method"] == "POST"
        mock_cep_service.lookup.assert_called_once_with("01001000")

    def test_unknown_cep(self, client, mock_cep_service):
        mock_cep_service.lookup.side_effect = AddressNotFoundError("99999999")

        response = client.get('/api/address/99999999')

        assert response.status_code == 404
        data = response.get_json()
        assert data["type"].endswith("/resource-not-found")
        assert "99999999" in data["detail"]

    def test_upstream_failure(self, client, mock_cep_service):
        mock_cep_service.lookup.side_effect = UpstreamServiceError("viacep", "timeout")

        response = client.get('/api/address/01001000')

        assert response.status_code == 502
        assert response.get_json()["type"].endswith("/bad-gateway")

    def test_short_cep(self, client, mock_cep_service):
        mock_cep_service.lookup.side_effect = ValidationException(
            "CEP deve conter 8 dígitos!",
            [{"field": "zipcode", "message": "CEP deve conter 8 dígitos!"}]
        )

        response = client.get('/api/address/0100')

        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == "zipcode"


class TestResolveCoordinates:
    """POST /api/address/coordinates"""

    def test_resolved(self, client, mock_geocoder, se_address, se_result):
        mock_geocoder.search.return_value = se_result

        response = client.post('/api/address/coordinates', json=se_address.model_dump())

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "resolved"
        assert data["attempts"] == 1
        assert data["coordinates"]["limitLatStart"] == -23.5510
        assert data["coordinates"]["limitLonStart"] == -46.6340
        assert data["errors"] == {}
        assert data["advisory"] is None

    def test_not_found(self, client, mock_geocoder, se_address):
        mock_geocoder.search.return_value = None

        response = client.post('/api/address/coordinates', json=se_address.model_dump())

        data = response.get_json()
        assert data["status"] == "not_found"
        assert data["attempts"] == 2
        assert data["coordinates"]["limitLatStart"] is None
        assert data["errors"]["latitude"] == COORDINATE_ERROR_MESSAGE
        assert data["advisory"]["title"] == NOT_FOUND_TITLE
        assert data["advisory"]["needButton"] is True

    def test_missing_body(self, client):
        response = client.post('/api/address/coordinates', data="not json", content_type="text/plain")

        assert response.status_code == 400

    def test_upstream_failure(self, client, mock_geocoder, se_address):
        mock_geocoder.search.side_effect = UpstreamServiceError("nominatim", "timeout")

        response = client.post('/api/address/coordinates', json=se_address.model_dump())

        assert response.status_code == 502
