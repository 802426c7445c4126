import pytest
import requests

from registrar import RegistrarAPIError, RegistrarClient, registrar_base_url


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else "json")

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class TestBaseUrl:
    def test_env_selects_host(self, make_source):
        assert registrar_base_url(make_source()) == "https://api.godaddy.com"
        assert registrar_base_url(make_source(env="ote")) == "https://api.ote-godaddy.com"

    def test_override_wins(self, make_source):
        assert registrar_base_url(make_source(env="ote", base_url="http://localhost:9000/")) == "http://localhost:9000"


class TestListDomains:
    def test_success(self, make_source):
        session = FakeSession(FakeResponse(200, [{"domain": "ai.fun"}]))
        client = RegistrarClient(make_source(api_key="k", api_secret="s"), session=session)
        assert client.configured
        rows = client.list_domains({"statuses": "ACTIVE", "limit": "5"})
        assert rows == [{"domain": "ai.fun"}]
        call = session.calls[0]
        assert call["url"] == "https://api.godaddy.com/v1/domains"
        assert call["headers"]["Authorization"] == "sso-key k:s"
        assert call["params"] == {"statuses": "ACTIVE"}
        assert call["timeout"] == 5

    def test_http_error_keeps_status(self, make_source):
        session = FakeSession(FakeResponse(403, {"code": "ACCESS_DENIED"}))
        client = RegistrarClient(make_source(api_key="k", api_secret="s"), session=session)
        with pytest.raises(RegistrarAPIError) as ei:
            client.list_domains()
        assert ei.value.status == 403
        assert ei.value.details == {"code": "ACCESS_DENIED"}

    def test_non_array_body(self, make_source):
        session = FakeSession(FakeResponse(200, {"domains": []}))
        client = RegistrarClient(make_source(api_key="k", api_secret="s"), session=session)
        with pytest.raises(RegistrarAPIError) as ei:
            client.list_domains()
        assert ei.value.status == 502

    def test_text_body(self, make_source):
        session = FakeSession(FakeResponse(500, None, text="upstream down"))
        client = RegistrarClient(make_source(api_key="k", api_secret="s"), session=session)
        with pytest.raises(RegistrarAPIError) as ei:
            client.list_domains()
        assert ei.value.status == 500
        assert ei.value.details == "upstream down"

    def test_network_error(self, make_source):
        session = FakeSession(error=requests.ConnectionError("refused"))
        client = RegistrarClient(make_source(api_key="k", api_secret="s"), session=session)
        with pytest.raises(RegistrarAPIError) as ei:
            client.list_domains()
        assert ei.value.status == 502

    def test_unconfigured(self, make_source):
        assert not RegistrarClient(make_source(api_key="k")).configured
