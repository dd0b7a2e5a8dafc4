"""Host capabilities backed by ``eth_abi`` and an Ethereum JSON-RPC provider."""

import logging
import re
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar, cast

import anyio
from compages import StructuringError
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from ethereum_rpc import (
    Address,
    Amount,
    BlockLabel,
    EstimateGasParams,
    EthCallParams,
    TxHash,
    TxReceipt,
    structure,
    unstructure,
)

from ._abi import AbiFunction, AbiParameter
from ._dependencies import ABIDecodingError, Dependencies
from ._entities import RawEvent, Transaction, TransactionReceipt, Value
from ._provider import ProviderSession
from ._signature import canonical_type, keccak256

logger = logging.getLogger(__name__)

_ARRAY_RE = re.compile(r"^(.+)\[(\d*)\]$")


class BadResponseFormat(Exception):
    """Raised if the RPC provider returned an unexpectedly formatted response."""


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def _normalize(parameter: AbiParameter, type_: str, value: Any) -> Any:
    """Brings the value to the form ``eth_abi`` expects."""
    if match := _ARRAY_RE.match(type_):
        return [_normalize(parameter, match.group(1), item) for item in value]
    if type_ == "tuple":
        components = parameter.components or ()
        if isinstance(value, Mapping):
            names = [component.name or f"_{index}" for index, component in enumerate(components)]
            if set(value) != set(names):
                raise ValueError(f"Expected fields {names}, got {list(value)}")
            items = [value[name] for name in names]
        else:
            items = list(value)
            if len(items) != len(components):
                raise ValueError(f"Expected {len(components)} elements, got {len(items)}")
        return tuple(
            _normalize(component, component.type, item)
            for component, item in zip(components, items, strict=True)
        )
    if type_.startswith("bytes") and isinstance(value, str):
        return bytes.fromhex(_strip_hex_prefix(value))
    return value


def _denormalize(parameter: AbiParameter, type_: str, value: Any) -> Value:
    """Wraps the value returned by ``eth_abi``; structs become dictionaries."""
    if match := _ARRAY_RE.match(type_):
        return [_denormalize(parameter, match.group(1), item) for item in value]
    if type_ == "tuple":
        components = parameter.components or ()
        return {
            component.name or f"_{index}": _denormalize(component, component.type, item)
            for index, (component, item) in enumerate(zip(components, value, strict=True))
        }
    return cast("Value", value)


@contextmanager
def convert_errors(method_name: str) -> Iterator[None]:
    try:
        yield
    except StructuringError as exc:
        raise BadResponseFormat(f"{method_name}: {exc}") from exc


RetType = TypeVar("RetType")


async def rpc_call(
    provider_session: ProviderSession, method_name: str, ret_type: type[RetType], *args: Any
) -> RetType:
    """
    Calls ``method_name`` and structures the result into ``ret_type``.
    A result of an unexpected shape is raised as :py:class:`BadResponseFormat`.
    """
    with convert_errors(method_name):
        result = await provider_session.rpc(method_name, *(unstructure(arg) for arg in args))
        return structure(ret_type, result)


def _call_params(transaction: Transaction[int]) -> EthCallParams:
    return EthCallParams(
        to=Address.from_hex(transaction.to),
        from_=Address.from_hex(transaction.from_) if transaction.from_ is not None else None,
        value=Amount(transaction.value or 0),
        data=bytes.fromhex(_strip_hex_prefix(transaction.data)),
    )


def _estimate_params(transaction: Transaction[int]) -> EthCallParams | EstimateGasParams:
    if transaction.from_ is None:
        return _call_params(transaction)
    return EstimateGasParams(
        from_=Address.from_hex(transaction.from_),
        to=Address.from_hex(transaction.to),
        value=Amount(transaction.value or 0),
        data=bytes.fromhex(_strip_hex_prefix(transaction.data)),
    )


def _receipt(receipt: TxReceipt) -> TransactionReceipt:
    logs = [
        RawEvent(
            data="0x" + log.data.hex(),
            topics=[cast("str", unstructure(topic)) for topic in log.topics],
        )
        for log in receipt.logs
    ]
    return TransactionReceipt(status=receipt.status, logs=logs)


class RPCDependencies(Dependencies[int]):
    """
    Contract binding capabilities using ``eth_abi`` for parameter packing
    and the given provider session for the transport.

    Currency amounts and gas costs are represented by Python integers.
    Struct values can be passed either as sequences or as mappings keyed by the field names,
    and are returned as dictionaries.
    Transactions are sent with ``eth_sendTransaction``,
    so the sender account has to be managed by the node.
    """

    def __init__(
        self,
        provider_session: ProviderSession,
        *,
        default_address: None | str = None,
        poll_latency: float = 1.0,
    ):
        self._provider_session = provider_session
        self._default_address = default_address
        self._poll_latency = poll_latency

    def keccak256(self, text: str) -> str:
        return keccak256(text)

    def encode_params(self, function: AbiFunction, args: Sequence[Value]) -> str:
        if len(args) != len(function.inputs):
            raise TypeError(
                f"Function {function.name} expects {len(function.inputs)} argument(s), "
                f"got {len(args)}"
            )
        types = [canonical_type(parameter) for parameter in function.inputs]
        values = [
            _normalize(parameter, parameter.type, arg)
            for parameter, arg in zip(function.inputs, args, strict=True)
        ]
        return encode(types, values).hex()

    def decode_params(self, parameters: Sequence[AbiParameter], data: str) -> list[Value]:
        types = [canonical_type(parameter) for parameter in parameters]
        try:
            values = decode(types, bytes.fromhex(_strip_hex_prefix(data)))
        except (DecodingError, ValueError) as exc:
            signature = "(" + ",".join(types) + ")"
            raise ABIDecodingError(
                f"Could not decode the value with the expected signature {signature}: {exc}"
            ) from exc
        return [
            _denormalize(parameter, parameter.type, value)
            for parameter, value in zip(parameters, values, strict=True)
        ]

    async def get_default_address(self) -> None | str:
        if self._default_address is not None:
            return self._default_address
        accounts = await rpc_call(self._provider_session, "eth_accounts", list[Address])
        return accounts[0].checksum if accounts else None

    async def call(self, transaction: Transaction[int]) -> str:
        result = await rpc_call(
            self._provider_session,
            "eth_call",
            bytes,
            _call_params(transaction),
            BlockLabel.LATEST,
        )
        return "0x" + result.hex()

    async def estimate_gas(self, transaction: Transaction[int]) -> int:
        return await rpc_call(
            self._provider_session,
            "eth_estimateGas",
            int,
            _estimate_params(transaction),
            BlockLabel.LATEST,
        )

    async def submit_transaction(self, transaction: Transaction[int]) -> TransactionReceipt:
        tx_hash = await rpc_call(
            self._provider_session, "eth_sendTransaction", TxHash, _call_params(transaction)
        )

        while True:
            # Need an explicit cast, mypy doesn't work with union types correctly.
            receipt = cast(
                "None | TxReceipt",
                await rpc_call(
                    self._provider_session,
                    "eth_getTransactionReceipt",
                    None | TxReceipt,  # type: ignore[arg-type]
                    tx_hash,
                ),
            )
            if receipt is not None:
                return _receipt(receipt)
            logger.debug("Waiting for the receipt of %s", tx_hash)
            await anyio.sleep(self._poll_latency)
