"""
Tests for the batchexecute RPC resolver: request shapes and response scanning.
"""

import httpx
import pytest

from gnewsdecoder.errors import HttpStatusError, NetworkError, ResponseFormatError
from gnewsdecoder.services.rpc import (
    RPC_URL,
    RpcResolver,
    build_batch_request,
    build_single_request,
    parse_batch_response,
    parse_single_response,
)
from helpers import form_field, rpc_body, untagged_rpc_body

EXPECTED_SINGLE = (
    r'[[["Fbv4je","[\"garturlreq\",[[\"en-US\",\"US\",[\"FINANCE_TOP_INDICES\",\"WEB_TEST_1_0_0\"],'
    r'null,null,1,1,\"US:en\",null,180,null,null,null,null,null,0,null,null,[1608992183,723341000]],'
    r'\"en-US\",\"US\",1,[2,3,4,8],1,0,\"655000234\",0,0,null,0],\"TOKEN\"]",null,"generic"]]]'
)


def resolver_for(handler):
    return RpcResolver(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestRequestShapes:
    def test_single_request_matches_wire_format(self):
        assert build_single_request("TOKEN") == EXPECTED_SINGLE

    def test_batch_request_tags_each_envelope(self):
        f_req = build_batch_request(["A", "B"])
        assert f_req.startswith('[[["Fbv4je",')
        assert f_req.endswith(',null,"2"]]]')
        assert r'\"A\"]",null,"1"],["Fbv4je",' in f_req
        assert f_req.count("garturlreq") == 2

    def test_batch_request_of_one_matches_single_except_tag(self):
        assert build_batch_request(["TOKEN"]) == EXPECTED_SINGLE.replace('"generic"', '"1"')


class TestParseSingleResponse:
    def test_first_url_is_returned(self):
        text = rpc_body(["https://publisher.example/a", "https://publisher.example/b"], tags=False)
        assert parse_single_response(text) == "https://publisher.example/a"

    def test_missing_marker(self):
        with pytest.raises(ResponseFormatError) as exc_info:
            parse_single_response(')]}\'\n\n[["wrb.fr","Fbv4je",null,null,null,[3],"generic"]]')
        assert "ResponseFormatError" in str(exc_info.value)

    def test_unterminated_value(self):
        with pytest.raises(ResponseFormatError):
            parse_single_response(r'[\"garturlres\",\"https://cut-off')


class TestParseBatchResponse:
    def test_all_entries_in_order(self):
        result = parse_batch_response(rpc_body(["https://a.example/", "https://b.example/"]))
        assert result.status is True
        assert result.urls == ["https://a.example/", "https://b.example/"]
        assert result.positions == [0, 1]

    def test_reordered_response_uses_envelope_tags(self):
        text = rpc_body(["https://third.example/", "https://first.example/"], tags=[3, 1])
        result = parse_batch_response(text)
        assert result.positions == [0, 2]
        assert result.urls == ["https://first.example/", "https://third.example/"]

    def test_untagged_entries_fall_back_to_appearance_order(self):
        result = parse_batch_response(untagged_rpc_body(["https://x.example/", "https://y.example/"]))
        assert result.positions == [0, 1]
        assert result.urls == ["https://x.example/", "https://y.example/"]

    def test_no_entries_is_a_format_error(self):
        with pytest.raises(ResponseFormatError):
            parse_batch_response(')]}\'\n\n[["di",42]]')


@pytest.mark.asyncio
class TestRpcResolver:
    """Tests for RpcResolver against a mocked endpoint."""

    async def test_resolve_posts_form_to_rpc_endpoint(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text=rpc_body(["https://publisher.example/story"], tags=False))

        url = await resolver_for(handler).resolve("TOKEN")

        assert url == "https://publisher.example/story"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == RPC_URL
        assert request.headers["Referer"] == "https://news.google.com/"
        assert request.headers["Content-Type"].startswith("application/x-www-form-urlencoded")
        assert form_field(request) == EXPECTED_SINGLE

    async def test_resolve_non_200(self):
        resolver = resolver_for(lambda request: httpx.Response(429, text="slow down"))
        with pytest.raises(HttpStatusError) as exc_info:
            await resolver.resolve("TOKEN")
        assert exc_info.value.status_code == 429
        assert "429" in str(exc_info.value)

    async def test_resolve_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            await resolver_for(handler).resolve("TOKEN")
        assert "NetworkError" in str(exc_info.value)

    async def test_resolve_many_single_post(self):
        calls = []

        def handler(request):
            calls.append(form_field(request))
            return httpx.Response(200, text=rpc_body(["https://a.example/", "https://b.example/"]))

        result = await resolver_for(handler).resolve_many(["A", "B"])

        assert len(calls) == 1
        assert calls[0] == build_batch_request(["A", "B"])
        assert result.urls == ["https://a.example/", "https://b.example/"]

    async def test_resolve_many_empty_makes_no_request(self, offline_handler):
        result = await resolver_for(offline_handler).resolve_many([])
        assert result.status is True
        assert result.urls == []

    async def test_resolve_many_partial_response(self):
        resolver = resolver_for(lambda request: httpx.Response(200, text=rpc_body(["https://a.example/"])))
        result = await resolver.resolve_many(["A", "B", "C"])
        assert result.urls == ["https://a.example/"]
        assert result.positions == [0]
