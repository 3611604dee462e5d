"""
Unit tests for the Evolution API gateway client.
"""

import json

import httpx
import pytest

from unichat.config import Settings
from unichat.gateway import GatewayClient, GatewayRequestError, extract_message_records
from unichat.kernel.errors import GatewayMisconfiguredError

pytestmark = pytest.mark.unit


def make_client(handler, **kwargs) -> tuple[GatewayClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return GatewayClient("http://gateway.test/", "secret", http_client, **kwargs), seen


class TestExtractMessageRecords:
    def test_nested_records(self):
        assert extract_message_records({"messages": {"records": [{"id": 1}], "total": 1}}) == [{"id": 1}]

    def test_messages_list(self):
        assert extract_message_records({"messages": [{"id": 1}]}) == [{"id": 1}]

    def test_bare_list(self):
        assert extract_message_records([{"id": 1}]) == [{"id": 1}]

    @pytest.mark.parametrize("payload", [None, "oops", {"messages": {"records": "x"}}, {}])
    def test_malformed_is_empty(self, payload):
        assert extract_message_records(payload) == []


@pytest.mark.asyncio
class TestGatewayClient:
    async def test_list_chats_request_shape(self):
        client, seen = make_client(lambda r: httpx.Response(200, json=[{"remoteJid": "x"}]))

        chats = await client.list_chats("user 1_sales")

        assert chats == [{"remoteJid": "x"}]
        request = seen[0]
        assert request.method == "POST"
        assert request.url.raw_path == b"/chat/findChats/user%201_sales"
        assert request.headers["apikey"] == "secret"
        assert json.loads(request.content) == {}

    async def test_list_messages_body(self):
        client, seen = make_client(
            lambda r: httpx.Response(200, json={"messages": {"records": [{"key": {"id": "a"}}]}}),
            message_page_offset=50,
        )

        records = await client.list_messages("user1_sales", "5511988887777@s.whatsapp.net")

        assert records == [{"key": {"id": "a"}}]
        assert json.loads(seen[0].content) == {
            "where": {"key": {"remoteJid": "5511988887777@s.whatsapp.net"}},
            "offset": 50,
            "page": 1,
        }

    async def test_lookup_contacts_non_list_is_empty(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"contacts": []}))
        assert await client.lookup_contacts("user1_sales") == []

    async def test_fetch_instances_is_get(self):
        client, seen = make_client(lambda r: httpx.Response(200, json=[{"name": "user1_a"}]))

        assert await client.fetch_instances() == [{"name": "user1_a"}]
        assert seen[0].method == "GET"
        assert str(seen[0].url) == "http://gateway.test/instance/fetchInstances"

    async def test_non_success_raises_once_without_retry(self):
        client, seen = make_client(lambda r: httpx.Response(503))

        with pytest.raises(GatewayRequestError) as exc_info:
            await client.list_chats("user1_sales")

        assert exc_info.value.upstream_status == 503
        assert exc_info.value.code == "upstream.gateway_status"
        assert len(seen) == 1

    async def test_network_error_propagates(self):
        def _fail(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_client(_fail)

        with pytest.raises(httpx.ConnectError):
            await client.list_chats("user1_sales")


class TestFromSettings:
    def test_missing_base_url_is_misconfiguration(self):
        settings = Settings(wpp_api_base_url=None, wpp_api_key="k")
        with pytest.raises(GatewayMisconfiguredError) as exc_info:
            GatewayClient.from_settings(settings, httpx.AsyncClient())
        assert exc_info.value.status_code == 500
        assert exc_info.value.code == "server.misconfigured"

    def test_strips_trailing_slash(self):
        settings = Settings(wpp_api_base_url="http://gw/", wpp_api_key="k", message_page_offset=10)
        client = GatewayClient.from_settings(settings, httpx.AsyncClient())
        assert client.base_url == "http://gw"
