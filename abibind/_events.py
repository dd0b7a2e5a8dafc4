import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from ._abi import AbiEventParameter
from ._dependencies import ABIDecodingError, Dependencies
from ._entities import Event, RawEvent, Value
from ._registry import EventRegistry

logger = logging.getLogger(__name__)

# Indexed reference-type values are hashed, so the topic holds a 32-byte hash
# instead of the value itself.
HASHED_TOPIC_TYPE = "bytes32"


class DecodeFailure(Exception):
    """
    Raised when a log matched a known event signature,
    but its topics or data could not be decoded.
    """

    signature: str
    """The signature of the matched event."""

    payload: str
    """The hex-encoded data that failed to decode."""

    def __init__(self, message: str, signature: str, payload: str):
        super().__init__(f"{message} for event {signature}.\n{payload}")
        self.signature = signature
        self.payload = payload


def type_for_event_decoding(parameter: AbiEventParameter) -> AbiEventParameter:
    """
    Returns the parameter as it should be decoded from a log entry:
    indexed strings, dynamic bytes, structs and arrays are replaced by their 32-byte hashes.
    """
    if not parameter.indexed:
        return parameter
    if (
        parameter.type in ("string", "bytes")
        or parameter.type.startswith("tuple")
        or parameter.type.endswith("]")
    ):
        return replace(parameter, type=HASHED_TOPIC_TYPE, components=None)
    return parameter


class EventDecoder:
    """Reconstructs events from raw log entries using the known event signatures."""

    def __init__(self, registry: EventRegistry, dependencies: Dependencies[Any]):
        self._registry = registry
        self._dependencies = dependencies

    def decode_events(self, raw_events: Iterable[RawEvent]) -> list[Event]:
        """
        Decodes the log entries in order.
        Entries that do not correspond to any known event are omitted.
        """
        events = []
        for raw_event in raw_events:
            event = self.decode_event(raw_event)
            if event is not None:
                events.append(event)
        return events

    def decode_event(self, raw_event: RawEvent) -> None | Event:
        """
        Decodes a single log entry.
        Returns ``None`` if its first topic is not a known event signature hash.
        """
        if not raw_event.topics:
            return None

        description = self._registry.get(raw_event.topics[0])
        if description is None:
            logger.debug("Skipping a log with an unknown topic %s", raw_event.topics[0])
            return None

        parameters = self._decode_parameters(
            description.parameters, raw_event.topics, raw_event.data, description.signature
        )
        return Event(name=description.name, parameters=parameters)

    def _decode_parameters(
        self,
        parameters: Sequence[AbiEventParameter],
        topics: Sequence[str],
        data: str,
        signature: str,
    ) -> dict[str, Value]:
        indexed_parameters = [
            type_for_event_decoding(parameter) for parameter in parameters if parameter.indexed
        ]
        nonindexed_parameters = [parameter for parameter in parameters if not parameter.indexed]

        indexed_data = "0x" + "".join(_strip_hex_prefix(topic) for topic in topics[1:])
        if len(topics) - 1 != len(indexed_parameters):
            raise DecodeFailure(
                f"Expected {len(indexed_parameters)} indexed topics, got {len(topics) - 1}",
                signature,
                indexed_data,
            )

        decoded_indexed = self._decode(
            indexed_parameters, indexed_data, "Failed to decode topics", signature
        )
        decoded_nonindexed = self._decode(
            nonindexed_parameters, data, "Failed to decode data", signature
        )

        # Name collisions between the two groups are resolved in favor of the non-indexed value.
        result: dict[str, Value] = {}
        for parameter, value in zip(indexed_parameters, decoded_indexed, strict=True):
            result[parameter.name] = value
        for parameter, value in zip(nonindexed_parameters, decoded_nonindexed, strict=True):
            result[parameter.name] = value
        return result

    def _decode(
        self, parameters: Sequence[AbiEventParameter], payload: str, message: str, signature: str
    ) -> list[Value]:
        try:
            values = self._dependencies.decode_params(parameters, payload)
        except ABIDecodingError as exc:
            raise DecodeFailure(message, signature, payload) from exc

        if values is None or len(values) != len(parameters):
            raise DecodeFailure(message, signature, payload)
        return values


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value
