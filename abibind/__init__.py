"""ABI-driven contract bindings: selector hashing, call dispatch and event decoding."""

from ._abi import (
    ABI_JSON,
    AbiEvent,
    AbiEventParameter,
    AbiFunction,
    AbiParameter,
    MalformedAbi,
    Mutability,
    parse_abi,
)
from ._codegen import generate_contract_interfaces
from ._contract import (
    CallFailed,
    Contract,
    ContractCallError,
    DeployedContract,
    Methods,
    TransactionFailed,
)
from ._dependencies import ABIDecodingError, Dependencies
from ._entities import Event, Numeric, RawEvent, Transaction, TransactionReceipt, Value
from ._events import DecodeFailure, EventDecoder
from ._provider import (
    HTTPError,
    HTTPProvider,
    InvalidResponse,
    ProviderError,
    ProviderSession,
    Unreachable,
)
from ._registry import EventDescription, EventRegistry
from ._rpc_dependencies import BadResponseFormat, RPCDependencies
from ._signature import (
    canonical_parameters,
    canonical_type,
    event_topic,
    function_selector,
    keccak256,
    signature,
)
from ._type_mapper import TypeMapper, UnnamedMultiOutput, UnsupportedType

__all__ = [
    "ABI_JSON",
    "ABIDecodingError",
    "AbiEvent",
    "AbiEventParameter",
    "AbiFunction",
    "AbiParameter",
    "BadResponseFormat",
    "CallFailed",
    "Contract",
    "ContractCallError",
    "DecodeFailure",
    "Dependencies",
    "DeployedContract",
    "Event",
    "EventDecoder",
    "EventDescription",
    "EventRegistry",
    "HTTPError",
    "HTTPProvider",
    "InvalidResponse",
    "MalformedAbi",
    "Methods",
    "Mutability",
    "Numeric",
    "ProviderError",
    "ProviderSession",
    "RPCDependencies",
    "RawEvent",
    "Transaction",
    "TransactionFailed",
    "TransactionReceipt",
    "TypeMapper",
    "UnnamedMultiOutput",
    "UnsupportedType",
    "Unreachable",
    "Value",
    "canonical_parameters",
    "canonical_type",
    "event_topic",
    "function_selector",
    "generate_contract_interfaces",
    "keccak256",
    "parse_abi",
    "signature",
]
