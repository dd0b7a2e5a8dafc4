"""JSON-RPC transport for :py:class:`abibind.RPCDependencies`."""

import itertools
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from json import JSONDecodeError
from typing import cast

import httpx
from compages import StructuringError
from ethereum_rpc import RPCError, structure

RPC_JSON = None | bool | int | float | str | Sequence["RPC_JSON"] | Mapping[str, "RPC_JSON"]
"""JSON values sent as RPC parameters and received as results."""


class InvalidResponse(Exception):
    """The node replied with something that is not a JSON-RPC response."""


class Unreachable(Exception):
    """The request did not reach the node."""


class HTTPError(Exception):
    """The node replied with a non-200 status and no RPC error object."""

    def __init__(self, status: int, message: str):
        super().__init__(status, message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"HTTP status {self.status}: {self.message}"


@dataclass
class ProviderError(Exception):
    """An RPC call failed, either on the node or on the way to it."""

    error: RPCError | Unreachable | InvalidResponse | HTTPError
    """The cause."""

    def __str__(self) -> str:
        return f"Provider error: {self.error}"


class ProviderSession(ABC):
    """An open connection to a node. Failed calls raise :py:class:`ProviderError`."""

    @abstractmethod
    async def rpc(self, method: str, *args: RPC_JSON) -> RPC_JSON:
        """Calls ``method`` with arguments already converted to JSON values."""


class HTTPProvider:
    """
    Connects to a node over HTTP(S).

    ``transport`` replaces the network transport of the ``httpx`` client,
    for example with ``httpx.MockTransport``.
    """

    def __init__(self, url: str, transport: None | httpx.AsyncBaseTransport = None):
        self._url = url
        self._transport = transport

    @asynccontextmanager
    async def session(self) -> AsyncIterator["HTTPProviderSession"]:
        """Opens a session sharing one HTTP connection pool between calls."""
        async with httpx.AsyncClient(transport=self._transport) as client:
            yield HTTPProviderSession(self._url, client)


class HTTPProviderSession(ProviderSession):
    def __init__(self, url: str, client: httpx.AsyncClient):
        self._url = url
        self._client = client
        self._request_ids = itertools.count()

    async def rpc(self, method: str, *args: RPC_JSON) -> RPC_JSON:
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(args),
            "id": next(self._request_ids),
        }
        try:
            response = await self._client.post(self._url, json=request)
        except httpx.TransportError as exc:
            raise ProviderError(Unreachable(str(exc))) from exc

        body = _response_body(response)

        # A node reports failed calls (e.g. reverts) with an error object,
        # usually alongside the status 200.
        if "error" in body:
            try:
                error = structure(RPCError, body["error"])
            except StructuringError as exc:
                raise ProviderError(
                    InvalidResponse(f"Failed to parse an error response: {body}")
                ) from exc
            raise ProviderError(error)

        if response.status_code != httpx.codes.OK:
            raise ProviderError(HTTPError(response.status_code, response.text))

        if "result" not in body:
            raise ProviderError(InvalidResponse(f"`result` is not present in the response: {body}"))
        return body["result"]


def _response_body(response: httpx.Response) -> Mapping[str, RPC_JSON]:
    try:
        body = response.json()
    except JSONDecodeError as exc:
        raise ProviderError(
            InvalidResponse(
                f"Expected a JSON response, got HTTP status {response.status_code}: "
                f"{response.text}"
            )
        ) from exc

    if not isinstance(body, Mapping):
        raise ProviderError(InvalidResponse(f"RPC response must be a dictionary, got: {body}"))
    return cast("Mapping[str, RPC_JSON]", body)
