import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, cast

from ._abi import ABI_JSON, AbiEvent, AbiEventParameter, MalformedAbi, parse_abi
from ._signature import event_topic, keccak256, signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventDescription:
    """
    Precomputed event metadata used to recognize and decode raw logs.
    Created once per distinct event signature.
    """

    name: str
    """The event name."""

    signature: str
    """The canonical signature, e.g. ``Transfer(address,address,uint256)``."""

    signature_hash: str
    """The full topic hash of the signature (``0x`` and 64 hex digits)."""

    parameters: tuple[AbiEventParameter, ...]
    """Event fields in declaration order."""

    @classmethod
    def from_event(
        cls, event: AbiEvent, keccak256: Callable[[str], str] = keccak256
    ) -> "EventDescription":
        """Computes the description of an ABI event."""
        return cls(
            name=event.name,
            signature=signature(event.name, event.inputs),
            signature_hash=event_topic(event, keccak256),
            parameters=event.inputs,
        )

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "EventDescription":
        entry_typed = cast("Mapping[str, Any]", entry)
        return cls(
            name=entry_typed["name"],
            signature=entry_typed["signature"],
            signature_hash=entry_typed["signatureHash"].lower(),
            parameters=tuple(
                AbiEventParameter.from_json(param) for param in entry_typed["parameters"]
            ),
        )

    def to_json(self) -> dict[str, ABI_JSON]:
        return {
            "name": self.name,
            "signature": self.signature,
            "signatureHash": self.signature_hash,
            "parameters": [param.to_json() for param in self.parameters],
        }


def iter_contract_abis(compiler_output: Mapping[str, Any]) -> Iterator[tuple[str, list[ABI_JSON]]]:
    """
    Yields pairs of contract names and their JSON ABIs from the compiler output.

    Supported shapes, optionally wrapped in a top-level ``contracts`` key:

    - source file identifiers mapped to contract names mapped to ``{"abi": [...]}``
      (as ``solc --standard-json`` returns);
    - ``"file.sol:Name"`` mapped to ``{"abi": ...}``, where the ABI can also be a JSON string
      (as ``solc --combined-json abi`` returns).
    """
    contracts = compiler_output.get("contracts", compiler_output)
    if not isinstance(contracts, Mapping):
        raise MalformedAbi(f"Expected a mapping of contracts, got {type(contracts).__name__}")

    for key, entry in contracts.items():
        if not isinstance(entry, Mapping):
            raise MalformedAbi(f"Expected a mapping for {key}, got {type(entry).__name__}")
        if "abi" in entry and not isinstance(entry["abi"], Mapping):
            yield key.rsplit(":", 1)[-1], _abi_list(key, entry["abi"])
            continue
        for contract_name, compiled_contract in entry.items():
            if not isinstance(compiled_contract, Mapping):
                raise MalformedAbi(
                    f"Expected a mapping for {key}:{contract_name}, "
                    f"got {type(compiled_contract).__name__}"
                )
            yield contract_name, _abi_list(contract_name, compiled_contract.get("abi", []))


def _abi_list(name: str, abi: Any) -> list[ABI_JSON]:
    # Older compilers embed the ABI as a JSON string
    if isinstance(abi, str):
        try:
            abi = json.loads(abi)
        except json.JSONDecodeError as exc:
            raise MalformedAbi(f"The ABI of {name} is not valid JSON") from exc
    if not isinstance(abi, list):
        raise MalformedAbi(f"Expected the ABI of {name} to be a list, got {type(abi).__name__}")
    return abi


class EventRegistry(Mapping[str, EventDescription]):
    """
    An immutable lookup table of event descriptions keyed by their topic hashes.

    Lookups are case-insensitive with respect to hex digits.
    """

    def __init__(self, descriptions: Iterable[EventDescription] = ()):
        entries: dict[str, EventDescription] = {}
        for description in descriptions:
            key = description.signature_hash.lower()
            if key in entries:
                # The first description for the given topic wins.
                logger.debug(
                    "Skipping event %s: topic %s is already registered for %s",
                    description.signature,
                    key,
                    entries[key].signature,
                )
                continue
            entries[key] = description
        self._entries = entries

    @classmethod
    def from_events(
        cls, events: Iterable[AbiEvent], keccak256: Callable[[str], str] = keccak256
    ) -> "EventRegistry":
        """Creates the registry from ABI event definitions."""
        return cls(EventDescription.from_event(event, keccak256) for event in events)

    @classmethod
    def from_compiler_output(
        cls, compiler_output: Mapping[str, Any], keccak256: Callable[[str], str] = keccak256
    ) -> "EventRegistry":
        """Creates the registry from the events of every contract in the compiler output."""
        events = []
        for _contract_name, json_abi in iter_contract_abis(compiler_output):
            _functions, contract_events = parse_abi(json_abi)
            events.extend(contract_events)
        return cls.from_events(events, keccak256)

    @classmethod
    def from_json(cls, entries: Iterable[ABI_JSON]) -> "EventRegistry":
        """Creates the registry from serialized event descriptions."""
        return cls(EventDescription.from_json(entry) for entry in entries)

    def to_json(self) -> list[ABI_JSON]:
        """Returns the serialized event descriptions."""
        return [description.to_json() for description in self._entries.values()]

    def __getitem__(self, signature_hash: str) -> EventDescription:
        return self._entries[signature_hash.lower()]

    def __contains__(self, signature_hash: object) -> bool:
        return isinstance(signature_hash, str) and signature_hash.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"EventRegistry({list(self._entries.values())!r})"
