import logging
import pprint
import textwrap
from collections.abc import Callable, Mapping
from keyword import iskeyword
from typing import Any

from ._abi import ABI_JSON, AbiFunction, AbiParameter, parse_abi
from ._registry import EventRegistry, iter_contract_abis
from ._signature import keccak256
from ._type_mapper import TypeMapper

logger = logging.getLogger(__name__)

INDENT = "    "

# Names that cannot be used for generated method parameters:
# the method options and the names the generated method bodies refer to.
RESERVED_NAMES = frozenset(["self", "sender", "attached_eth", "result", "cast", "dict", "zip"])

HEADER = '''\
# THIS FILE IS AUTOMATICALLY GENERATED BY `abibind`. DO NOT EDIT BY HAND
# ruff: noqa

"""Contract bindings."""

from typing import Any, Generic, TypedDict, cast

from abibind import AbiFunction, Contract, Dependencies, Event, EventRegistry, Numeric
'''


def generate_contract_interfaces(
    compiler_output: Mapping[str, Any], keccak256: Callable[[str], str] = keccak256
) -> str:
    """
    Generates the source of a Python module with bindings
    for every contract with a non-empty ABI in the compiler output.

    The module defines ``EVENT_REGISTRY`` with the events of all the contracts
    and a class per contract, parametrized by the numeric type used by the transport.
    """
    registry = EventRegistry.from_compiler_output(compiler_output, keccak256)

    records: dict[str, str] = {}
    classes = []
    for contract_name, json_abi in iter_contract_abis(compiler_output):
        if len(json_abi) == 0:
            logger.debug("Skipping contract %s with an empty ABI", contract_name)
            continue
        classes.append(_contract_class(contract_name, json_abi, records))

    logger.info(
        "Generated bindings for %d contract(s) with %d known event(s)", len(classes), len(registry)
    )

    parts = [HEADER, _registry_literal(registry)]
    if records:
        parts.append("\n".join(records.values()) + "\n")
    parts.extend(classes)
    return "\n\n".join(parts)


def _registry_literal(registry: EventRegistry) -> str:
    if len(registry) == 0:
        return "EVENT_REGISTRY = EventRegistry()\n"
    descriptions = _literal(registry.to_json(), INDENT)
    return f"EVENT_REGISTRY = EventRegistry.from_json(\n{INDENT}{descriptions}\n)\n"


def _literal(value: ABI_JSON, indent: str) -> str:
    text = pprint.pformat(value, width=100 - len(indent), sort_dicts=False)
    # The first line is placed by the caller.
    first, _, rest = text.partition("\n")
    return first + ("\n" + textwrap.indent(rest, indent) if rest else "")


def _contract_class(contract_name: str, json_abi: list[ABI_JSON], records: dict[str, str]) -> str:
    functions, _events = parse_abi(json_abi)
    type_mapper = TypeMapper(contract_name, records)

    # Overloaded functions are not supported, only the first one seen gets a binding.
    seen: dict[str, AbiFunction] = {}
    methods = []
    for function in functions:
        if function.name in seen:
            logger.warning(
                "Skipping an overload of %s.%s: overloaded functions are not supported",
                contract_name,
                function.name,
            )
            continue
        if not function.constant:
            methods.append(_remote_methods(function, type_mapper))
        methods.append(_local_method(function, type_mapper))
        seen[function.name] = function

    function_entries = "".join(
        f"{INDENT * 2}{name!r}: AbiFunction.from_json(\n"
        f"{INDENT * 3}{_literal(function.to_json(), INDENT * 3)}\n"
        f"{INDENT * 2}),\n"
        for name, function in seen.items()
    )

    lines = [
        f"class {contract_name}(Generic[Numeric]):",
        f'{INDENT}"""Bindings for the ``{contract_name}`` contract."""',
        "",
        f"{INDENT}_functions: dict[str, AbiFunction] = {{\n{function_entries}{INDENT}}}",
        "",
        f"{INDENT}def __init__(self, dependencies: Dependencies[Numeric], address: str):",
        f"{INDENT * 2}self._contract = Contract(dependencies, address, EVENT_REGISTRY)",
        "",
        f"{INDENT}@property",
        f"{INDENT}def address(self) -> str:",
        f"{INDENT * 2}return self._contract.address",
    ]
    return "\n".join(lines) + "\n" + "".join("\n" + method for method in methods)


def _remote_methods(function: AbiFunction, type_mapper: TypeMapper) -> str:
    name = _safe_identifier(function.name)
    params = _params_string(function, type_mapper)
    options = _options_string(function)
    call_args = _call_args_string(function, tx_name=True)
    return (
        f"{INDENT}async def {name}(self, {params}{options}) -> list[Event]:\n"
        f"{INDENT * 2}return await self._contract.remote_call({call_args})\n"
        "\n"
        f"{INDENT}async def {name}_estimateGas(self, {params}{options}) -> Numeric:\n"
        f"{INDENT * 2}return await self._contract.estimate_gas({call_args})\n"
    )


def _local_method(function: AbiFunction, type_mapper: TypeMapper) -> str:
    name = _safe_identifier(function.name)
    params = _params_string(function, type_mapper)
    options = _options_string(function)
    call_args = _call_args_string(function, tx_name=False)
    return_type = type_mapper.return_annotation(function)
    call = f"await self._contract.local_call({call_args})"

    if len(function.outputs) == 0:
        body = f"{INDENT * 2}{call}\n"
    elif len(function.outputs) == 1:
        body = f"{INDENT * 2}result = {call}\n{INDENT * 2}return cast({return_type!r}, result[0])\n"
    else:
        names = tuple(output.name for output in function.outputs)
        body = (
            f"{INDENT * 2}result = {call}\n"
            f"{INDENT * 2}return cast({return_type!r}, dict(zip({names!r}, result)))\n"
        )

    return f"{INDENT}async def {name}_(self, {params}{options}) -> {return_type}:\n{body}"


def _params_string(function: AbiFunction, type_mapper: TypeMapper) -> str:
    params = []
    for parameter, name in zip(function.inputs, param_names(function), strict=True):
        annotation = type_mapper.annotation(function.name, parameter, f"{function.name}_{name}")
        params.append(f"{name}: {annotation}, ")
    return "".join(params)


def _options_string(function: AbiFunction) -> str:
    options = "*, sender: None | str = None"
    if function.payable:
        options += ", attached_eth: None | Numeric = None"
    return options


def _call_args_string(function: AbiFunction, *, tx_name: bool) -> str:
    args = ", ".join(param_names(function))
    call_args = [f"self._functions[{function.name!r}]", f"[{args}]"]
    if tx_name:
        call_args.append(repr(function.name))
    call_args.append("sender=sender")
    if function.payable:
        call_args.append("attached_eth=attached_eth")
    return ", ".join(call_args)


def param_name(parameter: AbiParameter, index: int) -> str:
    """
    Returns the name of a generated method parameter:
    unnamed parameters become ``arg<index>``, a leading underscore is stripped,
    and names clashing with Python keywords or the method options get a trailing underscore.
    """
    if not parameter.name:
        return f"arg{index}"
    name = parameter.name[1:] if parameter.name.startswith("_") else parameter.name
    if not name:
        return f"arg{index}"
    return _safe_identifier(name)


def _safe_identifier(name: str) -> str:
    if iskeyword(name) or name in RESERVED_NAMES:
        return name + "_"
    return name


def param_names(function: AbiFunction) -> list[str]:
    """
    Returns the parameter names of the generated methods for the function.
    A name already taken by an earlier parameter gets the parameter index appended.
    """
    names: list[str] = []
    for index, parameter in enumerate(function.inputs):
        name = param_name(parameter, index)
        while name in names:
            name = f"{name}_{index}"
        names.append(name)
    return names
