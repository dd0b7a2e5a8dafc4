from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, cast

ABI_JSON = None | bool | int | float | str | Sequence["ABI_JSON"] | Mapping[str, "ABI_JSON"]
"""Values serializable to JSON ABI."""


class MalformedAbi(Exception):
    """Raised when an ABI entry cannot be interpreted (e.g. a tuple without components)."""


def _is_tuple_type(type_: str) -> bool:
    return type_ == "tuple" or type_.startswith("tuple[")


@dataclass(frozen=True)
class AbiParameter:
    """A named and typed parameter of a function, or a component of a tuple."""

    name: str
    """The parameter name, may be empty."""

    type: str
    """The ABI type token (``uint256``, ``address[]``, ``tuple[]`` etc)."""

    components: None | tuple["AbiParameter", ...] = None
    """Tuple components, present iff the type is a tuple or an array of tuples."""

    internal_type: None | str = None
    """The compiler's ``internalType`` annotation, used for naming generated records."""

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "AbiParameter":
        """Creates this object from a JSON ABI parameter entry."""
        entry_typed = cast("Mapping[str, Any]", entry)
        return cls(
            name=entry_typed.get("name") or "",
            type=entry_typed["type"],
            components=_components_from_json(entry_typed),
            internal_type=entry_typed.get("internalType"),
        )

    def to_json(self) -> dict[str, ABI_JSON]:
        """Returns this object's JSON ABI."""
        result: dict[str, ABI_JSON] = {"name": self.name, "type": self.type}
        if self.components is not None:
            result["components"] = [component.to_json() for component in self.components]
        return result


@dataclass(frozen=True)
class AbiEventParameter(AbiParameter):
    """An event field; ``indexed`` fields are stored in log topics instead of log data."""

    indexed: bool = False

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "AbiEventParameter":
        entry_typed = cast("Mapping[str, Any]", entry)
        return cls(
            name=entry_typed.get("name") or "",
            type=entry_typed["type"],
            components=_components_from_json(entry_typed),
            internal_type=entry_typed.get("internalType"),
            indexed=bool(entry_typed.get("indexed", False)),
        )

    def to_json(self) -> dict[str, ABI_JSON]:
        result = super().to_json()
        result["indexed"] = self.indexed
        return result


def _components_from_json(entry: Mapping[str, Any]) -> None | tuple[AbiParameter, ...]:
    components = entry.get("components")
    if components is None:
        if _is_tuple_type(entry["type"]):
            raise MalformedAbi(f"Expected components when type is {entry['type']}")
        return None
    return tuple(AbiParameter.from_json(component) for component in components)


class Mutability(Enum):
    """Possible states of a contract's function mutability."""

    PURE = "pure"
    """Solidity's ``pure`` (does not read or write the contract state)."""
    VIEW = "view"
    """Solidity's ``view`` (may read the contract state)."""
    NONPAYABLE = "nonpayable"
    """Solidity's ``nonpayable`` (may write the contract state)."""
    PAYABLE = "payable"
    """
    Solidity's ``payable`` (may write the contract state
    and accept associated funds with transactions).
    """

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "Mutability":
        """
        Takes the mutability from ``stateMutability``,
        or derives it from the legacy ``constant``/``payable`` flags if it is absent.
        """
        if "stateMutability" in entry:
            value = entry["stateMutability"]
            try:
                return cls(value)
            except ValueError as exc:
                raise MalformedAbi(f"Unknown mutability identifier: {value}") from exc
        if entry.get("constant", False):
            return cls.VIEW
        if entry.get("payable", False):
            return cls.PAYABLE
        return cls.NONPAYABLE

    @property
    def payable(self) -> bool:
        return self == Mutability.PAYABLE

    @property
    def constant(self) -> bool:
        return self in {Mutability.PURE, Mutability.VIEW}


@dataclass(frozen=True)
class AbiFunction:
    """A contract function (or a constructor/fallback entry) as described by the ABI."""

    name: str
    mutability: Mutability
    inputs: tuple[AbiParameter, ...] = ()
    outputs: tuple[AbiParameter, ...] = ()
    type: str = "function"

    @property
    def constant(self) -> bool:
        """``True`` for ``pure`` and ``view`` functions."""
        return self.mutability.constant

    @property
    def payable(self) -> bool:
        """Whether this function accepts an associated payment."""
        return self.mutability.payable

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "AbiFunction":
        """Creates this object from a JSON ABI function entry."""
        entry_typed = cast("Mapping[str, Any]", entry)
        if entry_typed["type"] not in ("function", "constructor", "fallback"):
            raise MalformedAbi(
                "Function object must be created from a JSON entry with "
                f"type='function', 'constructor' or 'fallback', got '{entry_typed['type']}'"
            )
        return cls(
            name=entry_typed.get("name", ""),
            type=entry_typed["type"],
            mutability=Mutability.from_json(entry_typed),
            inputs=tuple(AbiParameter.from_json(param) for param in entry_typed.get("inputs", [])),
            outputs=tuple(
                AbiParameter.from_json(param) for param in entry_typed.get("outputs", [])
            ),
        )

    def to_json(self) -> dict[str, ABI_JSON]:
        """Returns this object's JSON ABI."""
        return {
            "name": self.name,
            "type": self.type,
            "constant": self.constant,
            "payable": self.payable,
            "stateMutability": self.mutability.value,
            "inputs": [param.to_json() for param in self.inputs],
            "outputs": [param.to_json() for param in self.outputs],
        }


@dataclass(frozen=True)
class AbiEvent:
    """A contract event as described by the ABI."""

    name: str
    inputs: tuple[AbiEventParameter, ...] = ()
    anonymous: bool = False

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "AbiEvent":
        """Creates this object from a JSON ABI event entry."""
        entry_typed = cast("Mapping[str, Any]", entry)
        if entry_typed["type"] != "event":
            raise MalformedAbi("Event object must be created from a JSON entry with type='event'")
        return cls(
            name=entry_typed["name"],
            inputs=tuple(AbiEventParameter.from_json(param) for param in entry_typed["inputs"]),
            anonymous=bool(entry_typed.get("anonymous", False)),
        )

    def to_json(self) -> dict[str, ABI_JSON]:
        """Returns this object's JSON ABI."""
        return {
            "name": self.name,
            "type": "event",
            "inputs": [param.to_json() for param in self.inputs],
            "anonymous": self.anonymous,
        }


def parse_abi(entries: Iterable[ABI_JSON]) -> tuple[list[AbiFunction], list[AbiEvent]]:
    """
    Splits a JSON ABI into function and event definitions, preserving the order.
    Constructors, fallback/receive methods and errors are skipped.
    """
    functions = []
    events = []
    for entry in entries:
        entry_typed = cast("Mapping[str, Any]", entry)
        if entry_typed["type"] == "function":
            functions.append(AbiFunction.from_json(entry_typed))
        elif entry_typed["type"] == "event":
            events.append(AbiEvent.from_json(entry_typed))
    return functions, events
