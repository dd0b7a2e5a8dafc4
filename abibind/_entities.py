from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

Value = int | str | bool | bytes | Sequence["Value"] | Mapping[str, "Value"]
"""
A value passed to or returned from a contract:
a number, a string (text or a hex address), a boolean, a bytestring,
an ordered sequence (arrays) or a record keyed by field names (structs).
"""

Numeric = TypeVar("Numeric")
"""The representation of currency amounts and gas costs used by the transport."""

# The status of a successfully executed transaction.
SUCCESS_STATUS = 1

# The `eth_call` result of a call that did not execute any code.
EMPTY_RESULT = "0x"


@dataclass
class Transaction(Generic[Numeric]):
    """A call or a transaction to be sent to a contract."""

    to: str
    """The contract address."""

    data: str
    """Hex-encoded selector and arguments."""

    from_: None | str = None
    """The sender address, if known."""

    value: None | Numeric = None
    """The amount of currency attached (only for payable functions)."""

    def to_json(self) -> dict[str, Any]:
        """Returns the transaction as an RPC parameter object, omitting unset fields."""
        result: dict[str, Any] = {"to": self.to, "data": self.data}
        if self.value is not None:
            result["value"] = self.value
        if self.from_ is not None:
            result["from"] = self.from_
        return result


@dataclass
class RawEvent:
    """An undecoded log entry."""

    data: str
    """Hex-encoded non-indexed fields."""

    topics: Sequence[str]
    """Hex-encoded topics; the first one is the event's signature hash for non-anonymous events."""


@dataclass
class TransactionReceipt:
    """The outcome of a submitted transaction."""

    status: int
    """``1`` if the transaction succeeded."""

    logs: Sequence[RawEvent] = field(default_factory=list)
    """The log entries emitted during the transaction, in order."""

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS_STATUS


@dataclass
class Event:
    """A decoded event."""

    name: str
    """The event name."""

    parameters: dict[str, Value]
    """Event field values keyed by field name."""
