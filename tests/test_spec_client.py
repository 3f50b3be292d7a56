"""Tests for SpecClient."""
from unittest.mock import Mock, patch

import pytest
import requests

from asyncapi_gen.api.spec_client import SpecClient, SpecFetchError, is_remote


@pytest.fixture
def client():
    return SpecClient(timeout=5)


def make_response(text, status_code=200):
    response = Mock()
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


class TestSpecClient:
    """Test fetching remote documents."""

    def test_fetch_yaml(self, client):
        with patch.object(client.session, "get", return_value=make_response("asyncapi: 3.0.0\n")) as get:
            document = client.fetch_document("https://example.com/asyncapi.yaml")

        assert document == {"asyncapi": "3.0.0"}
        get.assert_called_once_with("https://example.com/asyncapi.yaml", timeout=5)

    def test_fetch_json(self, client):
        with patch.object(client.session, "get", return_value=make_response('{"asyncapi": "2.6.0"}')):
            assert client.fetch_document("https://example.com/a.json")["asyncapi"] == "2.6.0"

    def test_http_error(self, client):
        with patch.object(client.session, "get", return_value=make_response("", 404)):
            with pytest.raises(SpecFetchError):
                client.fetch_document("https://example.com/missing.yaml")

    def test_transport_error(self, client):
        with patch.object(client.session, "get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(SpecFetchError, match="refused"):
                client.fetch_document("https://example.com/a.yaml")

    def test_parse_error(self, client):
        with patch.object(client.session, "get", return_value=make_response("- not\n- a mapping\n")):
            with pytest.raises(SpecFetchError):
                client.fetch_document("https://example.com/a.yaml")

    def test_custom_headers(self):
        client = SpecClient(headers={"Authorization": "Bearer token"})
        assert client.session.headers["Authorization"] == "Bearer token"
        assert client.timeout == 30

    def test_is_remote(self):
        assert is_remote("https://example.com/a.yaml")
        assert not is_remote("docs/asyncapi.yaml")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
