# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the ViaCEP, Nominatim and persistence HTTP clients.
"""

import pytest
import requests
from unittest.mock import Mock

from conftest import make_http_response
from models.entities import GeocodeCandidate
from middleware.error_handler import (
    AddressNotFoundError, UpstreamServiceError, ServiceUnavailableException, ValidationException
)
from services.cep import CepService
from services.geocoding import NominatimGeocoder, NO_MATCH
from services.notification_api import NotificationPersistenceClient


class TestCepService:
    """Test postal-code lookups."""

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.service = CepService("https://viacep.example.com/ws/", timeout=3, session=self.session)

    def test_lookup_maps_fields(self, viacep_se_payload):
        self.session.get.return_value = make_http_response(200, viacep_se_payload)

        address = self.service.lookup("01001000")

        self.session.get.assert_called_once_with("https://viacep.example.com/ws/01001000/json/", timeout=3)
        assert address.zipcode == "01001000"
        assert address.street == "Praça da Sé"
        assert address.district == "Sé"
        assert address.complement == "lado ímpar"
        assert address.city == "São Paulo"
        assert address.state == "SP"

    def test_absent_fields_default_to_empty(self):
        self.session.get.return_value = make_http_response(200, {
            "cep": "89010-000",
            "localidade": "Blumenau",
            "uf": "SC",
            "bairro": None
        })

        address = self.service.lookup("89010000")

        assert address.street == ""
        assert address.district == ""
        assert address.complement == ""

    def test_erro_flag_is_not_found(self):
        self.session.get.return_value = make_http_response(200, {"erro": True})

        with pytest.raises(AddressNotFoundError) as exc_info:
            self.service.lookup("99999999")

        assert exc_info.value.cep == "99999999"
        assert exc_info.value.status_code == 404

    def test_network_error(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(UpstreamServiceError) as exc_info:
            self.service.lookup("01001000")

        assert exc_info.value.status_code == 502
        assert exc_info.value.service == "viacep"

    def test_http_error(self):
        self.session.get.return_value = make_http_response(500, {})

        with pytest.raises(UpstreamServiceError):
            self.service.lookup("01001000")

    def test_invalid_json(self):
        self.session.get.return_value = make_http_response(200, json_error=ValueError("no json"))

        with pytest.raises(UpstreamServiceError):
            self.service.lookup("01001000")

    def test_incomplete_cep_is_rejected_without_request(self):
        with pytest.raises(ValidationException):
            self.service.lookup("0100100")

        self.session.get.assert_not_called()

    def test_cache_hit_skips_request(self, se_address):
        cache = Mock()
        cache.get.return_value = se_address.model_dump()
        service = CepService(session=self.session, cache=cache)

        address = service.lookup("01001000")

        assert address == se_address
        cache.get.assert_called_once_with("cep:01001000")
        self.session.get.assert_not_called()

    def test_cache_miss_stores_result(self, viacep_se_payload):
        cache = Mock()
        cache.get.return_value = None
        self.session.get.return_value = make_http_response(200, viacep_se_payload)
        service = CepService(session=self.session, cache=cache)

        service.lookup("01001000")

        key, value = cache.set.call_args[0]
        assert key == "cep:01001000"
        assert value["street"] == "Praça da Sé"


class TestNominatimGeocoder:
    """Test geocoding searches."""

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.geocoder = NominatimGeocoder(
            "https://nominatim.example.com/",
            user_agent="alaga-help-tests",
            timeout=5,
            session=self.session
        )
        self.candidate = GeocodeCandidate(state="SP", city="São Paulo", street="Praça da Sé, Sé")

    def test_search_takes_first_match(self, nominatim_se_match):
        other = dict(nominatim_se_match, lat="0", lon="0")
        self.session.get.return_value = make_http_response(200, [nominatim_se_match, other])

        result = self.geocoder.search(self.candidate)

        assert result.latitude == -23.5503898
        assert result.bounds == [-23.5510, -23.5497, -46.6340, -46.6321]

        args, kwargs = self.session.get.call_args
        assert args[0] == "https://nominatim.example.com/search"
        assert kwargs["params"] == {
            "format": "json",
            "country": "Brazil",
            "state": "SP",
            "city": "São Paulo",
            "street": "Praça da Sé, Sé"
        }
        assert kwargs["headers"] == {"User-Agent": "alaga-help-tests"}
        assert kwargs["timeout"] == 5

    def test_empty_result_is_no_match(self):
        self.session.get.return_value = make_http_response(200, [])

        assert self.geocoder.search(self.candidate) is None

    def test_unparseable_match_is_no_match(self):
        self.session.get.return_value = make_http_response(200, [{"lat": "n/a", "lon": "n/a"}])

        assert self.geocoder.search(self.candidate) is None

    def test_network_error(self):
        self.session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(UpstreamServiceError) as exc_info:
            self.geocoder.search(self.candidate)

        assert exc_info.value.service == "nominatim"

    def test_non_list_body(self):
        self.session.get.return_value = make_http_response(200, {"error": "Unable to geocode"})

        with pytest.raises(UpstreamServiceError):
            self.geocoder.search(self.candidate)

    def test_cached_no_match(self):
        cache = Mock()
        cache.get.return_value = NO_MATCH
        geocoder = NominatimGeocoder(session=self.session, cache=cache)

        assert geocoder.search(self.candidate) is None
        self.session.get.assert_not_called()
        assert cache.get.call_args[0][0].startswith("geocode:format=json&country=Brazil")

    def test_no_match_is_cached(self):
        cache = Mock()
        cache.get.return_value = None
        self.session.get.return_value = make_http_response(200, [])
        geocoder = NominatimGeocoder(session=self.session, cache=cache)

        geocoder.search(self.candidate)

        assert cache.set.call_args[0][1] == NO_MATCH


class TestNotificationPersistenceClient:
    """Test forwarding to the persistence endpoint."""

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.client = NotificationPersistenceClient(
            "https://persistence.example.com/notifications",
            token="secret",
            timeout=4,
            session=self.session
        )

    def test_created_is_success(self):
        self.session.post.return_value = make_http_response(201, {"id": "abc"})

        result = self.client.create({"date": "2024-12-25"})

        assert result.success is True
        assert result.status_code == 201
        assert result.body == {"id": "abc"}
        _, kwargs = self.session.post.call_args
        assert kwargs["json"] == {"date": "2024-12-25"}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    @pytest.mark.parametrize("status_code", [200, 204, 400, 500])
    def test_other_statuses_are_failures(self, status_code):
        self.session.post.return_value = make_http_response(status_code, None)

        result = self.client.create({})

        assert result.success is False
        assert result.status_code == status_code

    def test_network_error(self):
        self.session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(UpstreamServiceError):
            self.client.create({})

    def test_unconfigured(self):
        client = NotificationPersistenceClient("", session=self.session)

        with pytest.raises(ServiceUnavailableException):
            client.create({})

        self.session.post.assert_not_called()

    def test_no_token_header(self):
        client = NotificationPersistenceClient("https://persistence.example.com", session=self.session)
        self.session.post.return_value = make_http_response(201, {})

        client.create({})

        assert "Authorization" not in self.session.post.call_args[1]["headers"]
