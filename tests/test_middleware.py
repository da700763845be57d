import logging

import pytest
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db

MIDDLEWARE_LOGGER = "notifyhub.api.middleware"


def _records(caplog):
    return [record for record in caplog.records if record.name == MIDDLEWARE_LOGGER]


def test_api_request_is_logged_with_user(api_client, target, caplog):
    with caplog.at_level(logging.INFO, logger=MIDDLEWARE_LOGGER):
        api_client.get("/api/notifications/", {"limit": 2})

    (record,) = _records(caplog)
    assert record.levelno == logging.INFO
    assert "[GET] /api/notifications/?limit=2 - 200" in record.getMessage()
    assert f"user={target.pk}" in record.getMessage()


def test_credentials_in_query_are_masked(api_client, caplog):
    with caplog.at_level(logging.INFO, logger=MIDDLEWARE_LOGGER):
        api_client.get("/api/notifications/", {"token": "s3cr3t"})

    (record,) = _records(caplog)
    assert "s3cr3t" not in record.getMessage()
    assert "token=" in record.getMessage()


def test_client_error_is_a_warning_with_envelope(caplog):
    with caplog.at_level(logging.INFO, logger=MIDDLEWARE_LOGGER):
        APIClient().get("/api/notifications/")

    (record,) = _records(caplog)
    assert record.levelno == logging.WARNING
    assert "401" in record.getMessage()
    assert "user=Anon" in record.getMessage()
    assert "'success': False" in record.getMessage()


def test_non_api_paths_are_not_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger=MIDDLEWARE_LOGGER):
        response = client.get("/")

    assert response.status_code == 200
    assert _records(caplog) == []
