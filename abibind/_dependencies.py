from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Generic

from ._abi import AbiFunction, AbiParameter
from ._entities import Numeric, Transaction, TransactionReceipt, Value


class ABIDecodingError(Exception):
    """Raised on an error when decoding a value in an Eth ABI encoded bytestring."""


class Dependencies(ABC, Generic[Numeric]):
    """
    The capabilities the contract bindings need from the host environment:
    hashing, ABI parameter packing, and the transport.

    Hex strings are ``0x``-prefixed, except for the output of :py:meth:`encode_params`,
    which is appended directly to the selector.
    """

    @abstractmethod
    def keccak256(self, text: str) -> str:
        """Returns the hex-encoded hash of a UTF-8 string."""
        ...

    @abstractmethod
    def encode_params(self, function: AbiFunction, args: Sequence[Value]) -> str:
        """Encodes the arguments according to ``function.inputs``, without the selector."""
        ...

    @abstractmethod
    def decode_params(self, parameters: Sequence[AbiParameter], data: str) -> list[Value]:
        """
        Decodes packed values according to ``parameters``.

        Raises :py:class:`ABIDecodingError` if the data does not match the parameters.
        """
        ...

    @abstractmethod
    async def get_default_address(self) -> None | str:
        """Returns the address to send calls from if the caller does not provide one."""
        ...

    @abstractmethod
    async def call(self, transaction: Transaction[Numeric]) -> str:
        """Executes the transaction locally and returns the hex-encoded output."""
        ...

    @abstractmethod
    async def estimate_gas(self, transaction: Transaction[Numeric]) -> Numeric:
        """Returns the estimated execution cost of the transaction."""
        ...

    @abstractmethod
    async def submit_transaction(self, transaction: Transaction[Numeric]) -> TransactionReceipt:
        """Submits the transaction and waits for its receipt."""
        ...
