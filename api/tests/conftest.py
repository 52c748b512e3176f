# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
import requests
from typing import Dict, Any, List
from unittest.mock import Mock

# Set test environment before the application module is imported
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ.pop('REDIS_URL', None)

from models.entities import StructuredAddress, GeocodeResult


class FakeTimer:
    """Stand-in for ``threading.Timer`` that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Run the callback as the timer thread would, even if cancelled."""
        self.function(*self.args, **self.kwargs)


class FakeTimerFactory:
    """Records every timer created so tests can fire them."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    def fire_pending(self):
        """Fire every started, non-cancelled timer."""
        for timer in list(self.timers):
            if timer.started and not timer.cancelled:
                timer.fire()


@pytest.fixture
def timer_factory():
    """Manual timer factory for debounce tests."""
    return FakeTimerFactory()


def make_http_response(status_code: int = 200, json_data: Any = None, json_error: Exception = None):
    """Build a mock ``requests.Response``."""
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def viacep_se_payload() -> Dict[str, Any]:
    """ViaCEP answer for 01001-000."""
    return {
        "cep": "01001-000",
        "logradouro": "Praça da Sé",
        "complemento": "lado ímpar",
        "bairro": "Sé",
        "localidade": "São Paulo",
        "uf": "SP",
        "ibge": "3550308",
        "ddd": "11"
    }


@pytest.fixture
def se_address() -> StructuredAddress:
    return StructuredAddress(
        zipcode="01001000",
        street="Praça da Sé",
        district="Sé",
        complement="lado ímpar",
        city="São Paulo",
        state="SP"
    )


@pytest.fixture
def nominatim_se_match() -> Dict[str, Any]:
    """First Nominatim match for Praça da Sé, coordinates as text."""
    return {
        "place_id": 123456,
        "lat": "-23.5503898",
        "lon": "-46.633081",
        "boundingbox": ["-23.5510", "-23.5497", "-46.6340", "-46.6321"],
        "display_name": "Praça da Sé, Sé, São Paulo, Brasil"
    }


@pytest.fixture
def se_result() -> GeocodeResult:
    return GeocodeResult(
        latitude=-23.5503898,
        longitude=-46.633081,
        bounds=[-23.5510, -23.5497, -46.6340, -46.6321]
    )


@pytest.fixture
def valid_submission() -> Dict[str, Any]:
    """A complete form payload as the client submits it."""
    return {
        "date": "25/12/2024",
        "zipcode": "01001000",
        "street": "Praça da Sé",
        "addressNumber": "100",
        "district": "Sé",
        "city": "São Paulo",
        "state": "SP",
        "complement": "lado ímpar",
        "observation": "Água na altura do joelho",
        "latitude": -23.5503898,
        "longitude": -46.633081,
        "limitLatStart": -23.5510,
        "limitLonStart": -46.6340,
        "limitLatEnd": -23.5497,
        "limitLonEnd": -46.6321
    }


@pytest.fixture
def mock_cep_service():
    return Mock()


@pytest.fixture
def mock_geocoder():
    return Mock()


@pytest.fixture
def mock_notification_client():
    return Mock()


@pytest.fixture
def app(mock_cep_service, mock_geocoder, mock_notification_client, timer_factory):
    """Application wired to mocked upstream clients and manual timers."""
    from app import create_app

    application = create_app({
        'TESTING': True,
        'ENVIRONMENT': 'test',
        'OTEL_ENABLED': False,
        'BASE_URL': 'https://api.example.com',
        'NOTIFICATION_API_URL': 'https://persistence.example.com/notifications',
        'CEP_SERVICE': mock_cep_service,
        'GEOCODER': mock_geocoder,
        'NOTIFICATION_CLIENT': mock_notification_client,
        'TIMER_FACTORY': timer_factory
    })
    return application


@pytest.fixture
def client(app):
    """Create test client."""
    with app.test_client() as client:
        yield client
