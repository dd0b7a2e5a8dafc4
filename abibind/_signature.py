from collections.abc import Callable, Iterable

from ethereum_rpc import keccak

from ._abi import AbiEvent, AbiFunction, AbiParameter, MalformedAbi

# The number of hex characters in a function selector, including the `0x` prefix.
SELECTOR_HEX_LENGTH = 2 + 4 * 2

# The number of hex characters in an event topic, including the `0x` prefix.
TOPIC_HEX_LENGTH = 2 + 32 * 2


def keccak256(text: str) -> str:
    """Returns the hash of a UTF-8 string as a ``0x``-prefixed lowercase hex string."""
    return "0x" + keccak(text.encode()).hex()


def canonical_type(parameter: AbiParameter) -> str:
    """
    Returns the type of the parameter in the canonical form.
    Tuples are expanded into their parenthesized components,
    keeping any array suffix (``tuple[]`` becomes ``(...)[]``).
    """
    if parameter.type == "tuple" or parameter.type.startswith("tuple["):
        if not parameter.components:
            raise MalformedAbi(f"Expected components when type is {parameter.type}")
        array_suffix = parameter.type[len("tuple") :]
        return "(" + canonical_parameters(parameter.components) + ")" + array_suffix
    return parameter.type


def canonical_parameters(parameters: Iterable[AbiParameter]) -> str:
    """Returns the comma-joined canonical types of the parameters (names are dropped)."""
    return ",".join(canonical_type(parameter) for parameter in parameters)


def signature(name: str, parameters: Iterable[AbiParameter]) -> str:
    """Returns the signature string used for selector and topic hashing."""
    return f"{name}({canonical_parameters(parameters)})"


def function_selector(function: AbiFunction, keccak256: Callable[[str], str]) -> str:
    """Returns the hex-encoded 4-byte selector of the function, with the ``0x`` prefix."""
    return keccak256(signature(function.name, function.inputs))[:SELECTOR_HEX_LENGTH]


def event_topic(event: AbiEvent, keccak256: Callable[[str], str]) -> str:
    """Returns the hex-encoded topic hash of the event, with the ``0x`` prefix."""
    return keccak256(signature(event.name, event.inputs))[:TOPIC_HEX_LENGTH].lower()
