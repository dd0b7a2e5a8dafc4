import copy
import json
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from typing import Any, Generic, TypeVar

from ._abi import ABI_JSON, AbiFunction, parse_abi
from ._dependencies import Dependencies
from ._entities import EMPTY_RESULT, Event, Numeric, Transaction, TransactionReceipt, Value
from ._events import EventDecoder
from ._registry import EventRegistry
from ._signature import function_selector


class ContractCallError(Exception):
    """The base class for failed contract invocations."""

    function: AbiFunction
    """The ABI of the invoked function."""

    arguments: tuple[Value, ...]
    """A snapshot of the arguments the function was invoked with."""

    def __init__(self, message: str, function: AbiFunction, arguments: Sequence[Value]):
        super().__init__(message)
        self.function = function
        self.arguments = tuple(copy.deepcopy(list(arguments)))

    @property
    def abi_json(self) -> str:
        """The ABI of the invoked function serialized to JSON."""
        return json.dumps(self.function.to_json())


class CallFailed(ContractCallError):
    """Raised when a local call returned the empty result, meaning no code was executed."""

    def __init__(self, function: AbiFunction, arguments: Sequence[Value]):
        super().__init__(
            f"Call returned '{EMPTY_RESULT}' indicating failure.", function, arguments
        )


class TransactionFailed(ContractCallError):
    """Raised when a submitted transaction has a failure status in its receipt."""

    tx_name: str
    """The name of the transaction (the invoked function's name)."""

    receipt: TransactionReceipt
    """The receipt of the failed transaction."""

    def __init__(
        self,
        function: AbiFunction,
        arguments: Sequence[Value],
        tx_name: str,
        receipt: TransactionReceipt,
    ):
        super().__init__(f"Tx {tx_name} failed: {receipt}", function, arguments)
        self.tx_name = tx_name
        self.receipt = receipt


class Contract(Generic[Numeric]):
    """
    The invocation core shared by contract bindings.

    Pure and view functions are executed locally (:py:meth:`local_call`)
    and return the function's result.
    Mutating functions can also be submitted as transactions (:py:meth:`remote_call`),
    in which case only the events emitted during the transaction are returned,
    since the EVM does not make the function results available to the caller.
    """

    dependencies: Dependencies[Numeric]
    """The host environment capabilities."""

    address: str
    """The contract address."""

    registry: EventRegistry
    """Known events used to decode transaction logs."""

    def __init__(
        self,
        dependencies: Dependencies[Numeric],
        address: str,
        registry: None | EventRegistry = None,
    ):
        self.dependencies = dependencies
        self.address = address
        self.registry = registry if registry is not None else EventRegistry()
        self._event_decoder = EventDecoder(self.registry, dependencies)

    def encode_method(self, function: AbiFunction, args: Sequence[Value]) -> str:
        """Returns the hex-encoded selector followed by the encoded arguments."""
        selector = function_selector(function, self.dependencies.keccak256)
        return selector + self.dependencies.encode_params(function, args)

    async def local_call(
        self,
        function: AbiFunction,
        args: Sequence[Value],
        *,
        sender: None | str = None,
        attached_eth: None | Numeric = None,
    ) -> list[Value]:
        """
        Executes the function locally and returns its decoded outputs.

        Raises :py:class:`CallFailed` if the call returned the empty result.
        """
        transaction = await self._make_transaction(function, args, sender, attached_eth)
        result = await self.dependencies.call(transaction)
        if result == EMPTY_RESULT:
            raise CallFailed(function, args)
        return self.dependencies.decode_params(function.outputs, result)

    async def remote_call(
        self,
        function: AbiFunction,
        args: Sequence[Value],
        tx_name: str,
        *,
        sender: None | str = None,
        attached_eth: None | Numeric = None,
    ) -> list[Event]:
        """
        Submits the function call as a transaction
        and returns the known events emitted during it, in order.

        Raises :py:class:`TransactionFailed` if the receipt has a failure status.
        """
        transaction = await self._make_transaction(function, args, sender, attached_eth)
        receipt = await self.dependencies.submit_transaction(transaction)
        if not receipt.succeeded:
            raise TransactionFailed(function, args, tx_name, receipt)
        return self._event_decoder.decode_events(receipt.logs)

    async def estimate_gas(
        self,
        function: AbiFunction,
        args: Sequence[Value],
        tx_name: str,  # noqa: ARG002
        *,
        sender: None | str = None,
        attached_eth: None | Numeric = None,
    ) -> Numeric:
        """Returns the estimated cost of submitting the function call as a transaction."""
        transaction = await self._make_transaction(function, args, sender, attached_eth)
        return await self.dependencies.estimate_gas(transaction)

    async def _make_transaction(
        self,
        function: AbiFunction,
        args: Sequence[Value],
        sender: None | str,
        attached_eth: None | Numeric,
    ) -> Transaction[Numeric]:
        if attached_eth is not None and not function.payable:
            raise ValueError(f"Function {function.name} does not accept an associated payment")

        # The sender is resolved anew for every invocation.
        from_ = sender or await self.dependencies.get_default_address()
        data = self.encode_method(function, args)
        return Transaction(to=self.address, data=data, from_=from_ or None, value=attached_eth)


MethodType = TypeVar("MethodType")


class Methods(Generic[MethodType]):
    """A holder for named methods which can be accessed as attributes, or iterated over."""

    def __init__(self, methods_dict: Mapping[str, MethodType]):
        self._methods_dict = methods_dict

    def __getattr__(self, method_name: str) -> MethodType:
        """Returns the method by name."""
        try:
            return self._methods_dict[method_name]
        except KeyError as exc:
            raise AttributeError(method_name) from exc

    def __iter__(self) -> Iterator[MethodType]:
        """Returns the iterator over all methods."""
        return iter(self._methods_dict.values())


def _read_method(contract: Contract[Any], function: AbiFunction) -> Callable[..., Awaitable[Any]]:
    async def method(*args: Value, sender: None | str = None, attached_eth: Any = None) -> Any:
        result = await contract.local_call(
            function, args, sender=sender, attached_eth=attached_eth
        )
        if len(function.outputs) == 0:
            return None
        if len(function.outputs) == 1:
            return result[0]
        return {output.name: value for output, value in zip(function.outputs, result, strict=True)}

    method.__name__ = function.name + "_"
    return method


def _write_method(
    contract: Contract[Any], function: AbiFunction
) -> Callable[..., Awaitable[list[Event]]]:
    async def method(*args: Value, sender: None | str = None, attached_eth: Any = None) -> Any:
        return await contract.remote_call(
            function, args, function.name, sender=sender, attached_eth=attached_eth
        )

    method.__name__ = function.name
    return method


def _estimate_method(
    contract: Contract[Any], function: AbiFunction
) -> Callable[..., Awaitable[Any]]:
    async def method(*args: Value, sender: None | str = None, attached_eth: Any = None) -> Any:
        return await contract.estimate_gas(
            function, args, function.name, sender=sender, attached_eth=attached_eth
        )

    method.__name__ = function.name + "_estimateGas"
    return method


class DeployedContract(Generic[Numeric]):
    """
    A contract bound to an address, with methods created from its JSON ABI at runtime.

    Behaves the same way as the generated bindings:
    ``read.<name>`` executes locally and returns the result,
    ``write.<name>`` submits a transaction and returns the emitted events,
    ``estimate.<name>`` estimates the cost of the transaction.
    Mutating methods are only available in ``write`` and ``estimate``
    (and in ``read``, to get the result of a dry run);
    pure and view methods are only available in ``read``.
    Overloaded functions are not supported, the first declaration wins.
    """

    contract: Contract[Numeric]
    """The underlying invocation core."""

    read: Methods[Callable[..., Awaitable[Any]]]
    """Local calls returning decoded outputs."""

    write: Methods[Callable[..., Awaitable[list[Event]]]]
    """Transactions returning decoded events."""

    estimate: Methods[Callable[..., Awaitable[Numeric]]]
    """Gas estimations for mutating methods."""

    def __init__(
        self,
        json_abi: Sequence[ABI_JSON],
        dependencies: Dependencies[Numeric],
        address: str,
        registry: None | EventRegistry = None,
    ):
        functions, events = parse_abi(json_abi)
        if registry is None:
            registry = EventRegistry.from_events(events, dependencies.keccak256)
        self.contract = Contract(dependencies, address, registry)

        unique_functions: dict[str, AbiFunction] = {}
        for function in functions:
            unique_functions.setdefault(function.name, function)

        self.read = Methods(
            {
                name: _read_method(self.contract, function)
                for name, function in unique_functions.items()
            }
        )
        self.write = Methods(
            {
                name: _write_method(self.contract, function)
                for name, function in unique_functions.items()
                if not function.constant
            }
        )
        self.estimate = Methods(
            {
                name: _estimate_method(self.contract, function)
                for name, function in unique_functions.items()
                if not function.constant
            }
        )

    @property
    def address(self) -> str:
        """The contract address."""
        return self.contract.address
