from collections.abc import Callable, Sequence

import pytest
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from abibind import (
    ABIDecodingError,
    AbiFunction,
    AbiParameter,
    Dependencies,
    Transaction,
    TransactionReceipt,
    Value,
    canonical_type,
    keccak256,
)

CONTRACT_ADDRESS = "0x" + "ab" * 20
DEFAULT_ADDRESS = "0x" + "cd" * 20


class StubDependencies(Dependencies[int]):
    """
    Records every request and returns scripted transport results.
    Parameter packing uses ``eth_abi`` unless ``decode_results`` has queued values.
    """

    def __init__(self, keccak: Callable[[str], str] = keccak256):
        self._keccak = keccak
        self.default_address: None | str = DEFAULT_ADDRESS
        self.call_result = "0x"
        self.gas = 21000
        self.receipt = TransactionReceipt(status=1, logs=[])

        self.hashed: list[str] = []
        self.decode_requests: list[tuple[list[str], str]] = []
        self.decode_results: list[list[Value]] = []
        self.default_address_requests = 0
        self.calls: list[Transaction[int]] = []
        self.estimates: list[Transaction[int]] = []
        self.submitted: list[Transaction[int]] = []

    def keccak256(self, text: str) -> str:
        self.hashed.append(text)
        return self._keccak(text)

    def encode_params(self, function: AbiFunction, args: Sequence[Value]) -> str:
        types = [canonical_type(parameter) for parameter in function.inputs]
        return encode(types, list(args)).hex()

    def decode_params(self, parameters: Sequence[AbiParameter], data: str) -> list[Value]:
        types = [canonical_type(parameter) for parameter in parameters]
        self.decode_requests.append(([parameter.type for parameter in parameters], data))
        if self.decode_results:
            return self.decode_results.pop(0)
        try:
            return list(decode(types, bytes.fromhex(data[2:])))
        except (DecodingError, ValueError) as exc:
            raise ABIDecodingError(str(exc)) from exc

    async def get_default_address(self) -> None | str:
        self.default_address_requests += 1
        return self.default_address

    async def call(self, transaction: Transaction[int]) -> str:
        self.calls.append(transaction)
        return self.call_result

    async def estimate_gas(self, transaction: Transaction[int]) -> int:
        self.estimates.append(transaction)
        return self.gas

    async def submit_transaction(self, transaction: Transaction[int]) -> TransactionReceipt:
        self.submitted.append(transaction)
        return self.receipt


@pytest.fixture
def dependencies() -> StubDependencies:
    return StubDependencies()
