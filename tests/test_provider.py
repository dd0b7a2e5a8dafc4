import json
from collections.abc import Callable

import httpx
import pytest
from ethereum_rpc import RPCError

from abibind import (
    HTTPError,
    HTTPProvider,
    InvalidResponse,
    ProviderError,
    Unreachable,
)

URL = "http://127.0.0.1:8545"

Handler = Callable[[httpx.Request], httpx.Response]


def make_provider(handler: Handler) -> HTTPProvider:
    return HTTPProvider(URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def requests() -> list[dict[str, object]]:
    return []


def responding(status_code: int, content: bytes, requests: list[dict[str, object]]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(status_code, content=content)

    return handler


async def test_happy_path(requests: list[dict[str, object]]) -> None:
    handler = responding(200, b'{"jsonrpc": "2.0", "id": 0, "result": "0x1"}', requests)
    async with make_provider(handler).session() as session:
        assert await session.rpc("eth_chainId") == "0x1"
        assert await session.rpc("eth_call", {"to": "0x00"}, "latest") == "0x1"

    assert requests == [
        {"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": 0},
        {"jsonrpc": "2.0", "method": "eth_call", "params": [{"to": "0x00"}, "latest"], "id": 1},
    ]


async def test_rpc_error(requests: list[dict[str, object]]) -> None:
    content = b'{"jsonrpc": "2.0", "id": 0, "error": {"code": -32000, "message": "reverted"}}'
    async with make_provider(responding(200, content, requests)).session() as session:
        with pytest.raises(ProviderError) as excinfo:
            await session.rpc("eth_call")
    assert isinstance(excinfo.value.error, RPCError)
    assert excinfo.value.error.message == "reverted"


async def test_malformed_error(requests: list[dict[str, object]]) -> None:
    content = b'{"jsonrpc": "2.0", "id": 0, "error": {"code": "oops"}}'
    async with make_provider(responding(400, content, requests)).session() as session:
        with pytest.raises(ProviderError, match="Failed to parse an error response") as excinfo:
            await session.rpc("eth_call")
    assert isinstance(excinfo.value.error, InvalidResponse)


async def test_not_json(requests: list[dict[str, object]]) -> None:
    async with make_provider(responding(500, b"foo", requests)).session() as session:
        with pytest.raises(
            ProviderError,
            match="Provider error: Expected a JSON response, got HTTP status 500: foo",
        ):
            await session.rpc("eth_chainId")


async def test_not_a_dictionary(requests: list[dict[str, object]]) -> None:
    async with make_provider(responding(200, b"[1, 2]", requests)).session() as session:
        with pytest.raises(ProviderError, match="RPC response must be a dictionary") as excinfo:
            await session.rpc("eth_chainId")
    assert isinstance(excinfo.value.error, InvalidResponse)


async def test_no_result(requests: list[dict[str, object]]) -> None:
    content = b'{"jsonrpc": "2.0", "id": 0}'
    async with make_provider(responding(200, content, requests)).session() as session:
        with pytest.raises(ProviderError, match="`result` is not present in the response"):
            await session.rpc("eth_chainId")


async def test_http_error(requests: list[dict[str, object]]) -> None:
    # A JSON body with no "error" field and a non-OK status
    content = b'{"jsonrpc": "2.0", "id": 0, "result": "0x1"}'
    async with make_provider(responding(503, content, requests)).session() as session:
        with pytest.raises(ProviderError, match="HTTP status") as excinfo:
            await session.rpc("eth_chainId")
    assert isinstance(excinfo.value.error, HTTPError)
    assert excinfo.value.error.status == 503
    assert excinfo.value.error.message == content.decode()


async def test_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("All connection attempts failed", request=request)

    async with make_provider(handler).session() as session:
        with pytest.raises(ProviderError, match="All connection attempts failed") as excinfo:
            await session.rpc("eth_chainId")
    assert isinstance(excinfo.value.error, Unreachable)


async def test_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("Timed out", request=request)

    async with make_provider(handler).session() as session:
        with pytest.raises(ProviderError, match="Timed out") as excinfo:
            await session.rpc("eth_chainId")
    assert isinstance(excinfo.value.error, Unreachable)


async def test_request_ids_per_session(requests: list[dict[str, object]]) -> None:
    content = b'{"jsonrpc": "2.0", "id": 0, "result": null}'
    provider = make_provider(responding(200, content, requests))
    for _ in range(2):
        async with provider.session() as session:
            assert await session.rpc("eth_blockNumber") is None
            assert await session.rpc("eth_blockNumber") is None

    assert [request["id"] for request in requests] == [0, 1, 0, 1]
