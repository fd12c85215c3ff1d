"""
Tests for Service Caller
"""

import json

import httpx
import pytest

from utils.http_client import Request, RequestMethod, Response, ServiceCaller, USER_AGENT


class TestResponse:
    """Test response helpers"""

    @pytest.mark.parametrize("status_code,success,client_error,server_error,connection_error", [
        (201, True, False, False, False),
        (404, False, True, False, False),
        (503, False, False, True, False),
        (0, False, False, False, True),
    ])
    def test_status_properties(self, status_code, success, client_error, server_error, connection_error):
        response = Response(
            status_code=status_code,
            headers={},
            content=b"",
            text="",
            url="http://localhost",
            elapsed=0.0,
            request_method="GET"
        )

        assert response.is_success == success
        assert response.is_client_error == client_error
        assert response.is_server_error == server_error
        assert response.is_connection_error == connection_error

    def test_method_has_body(self):
        assert RequestMethod.POST.has_body
        assert RequestMethod.PATCH.has_body
        assert not RequestMethod.GET.has_body
        assert not RequestMethod.DELETE.has_body


class TestServiceCaller:
    """Test request building against a mock transport"""

    def setup_method(self):
        self.sent = []
        self.caller = ServiceCaller("http://localhost:8080/", url_params={"tenant": "acme"})

    def install(self, handler=None):
        def record(request: httpx.Request) -> httpx.Response:
            self.sent.append(request)
            return httpx.Response(201, json={"id": 1})

        self.caller.client = httpx.AsyncClient(transport=httpx.MockTransport(handler or record))

    def test_build_url(self):
        payload = {"id": 7, "name": "Rex"}

        url = self.caller.build_url("/{tenant}/pets/{id}/{missing}", payload)

        assert url == "http://localhost:8080/acme/pets/7/{missing}"
        assert payload == {"name": "Rex"}

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        self.install()

        response = await self.caller.call(Request(
            method=RequestMethod.POST,
            path="/pets/{id}",
            payload={"id": 3, "name": "Rex", "dryRun": True},
            headers={"X-Request-Id": "abc"},
            query_params=frozenset({"dryRun"})
        ))

        request = self.sent[0]
        assert response.status_code == 201
        assert response.request_method == "POST"
        assert request.url.path == "/pets/3"
        assert request.url.params["dryRun"] == "true"
        assert json.loads(request.content) == {"name": "Rex"}
        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-request-id"] == "abc"
        assert request.headers["user-agent"] == USER_AGENT
        await self.caller.close()

    @pytest.mark.asyncio
    async def test_get_sends_query_parameters(self):
        self.install()

        await self.caller.call(Request(
            method=RequestMethod.GET,
            path="/pets",
            payload={"limit": 10, "name": None, "filter": {"a": 1}}
        ))

        request = self.sent[0]
        assert request.url.params["limit"] == "10"
        assert request.url.params["name"] == ""
        assert "filter" not in request.url.params
        assert request.content == b""

    @pytest.mark.asyncio
    async def test_body_text_replaces_json(self):
        self.install()

        await self.caller.call(Request(
            method=RequestMethod.PUT,
            path="/pets",
            payload={"name": "Rex"},
            body_text='{"name": "Rex"}bla'
        ))

        assert self.sent[0].content == b'{"name": "Rex"}bla'

    @pytest.mark.asyncio
    async def test_transport_failure_is_status_zero(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        self.install(refuse)

        response = await self.caller.call(Request(method=RequestMethod.GET, path="/pets"))

        assert response.status_code == 0
        assert response.is_connection_error
        assert "Connection refused" in response.text

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        async with ServiceCaller("http://localhost:8080") as caller:
            assert caller.client is not None

        assert caller.client is None
