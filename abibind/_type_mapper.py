import re
from collections.abc import Sequence

from ._abi import AbiFunction, AbiParameter, MalformedAbi

_INTEGER_RE = re.compile(r"^u?int(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d*)$")
_ARRAY_RE = re.compile(r"^(.+)\[(\d*)\]$")
_IDENTIFIER_RE = re.compile(r"[^0-9a-zA-Z_]")

_SIMPLE_TYPES = {
    "bool": "bool",
    "string": "str",
    "address": "str",
}


class UnsupportedType(Exception):
    """Raised when an ABI type has no Python representation in the generated bindings."""

    contract_name: str
    function_name: str
    parameter: AbiParameter

    def __init__(self, contract_name: str, function_name: str, parameter: AbiParameter):
        super().__init__(
            f"Unrecognized value in {contract_name}.{function_name}: {parameter.to_json()}"
        )
        self.contract_name = contract_name
        self.function_name = function_name
        self.parameter = parameter


class UnnamedMultiOutput(Exception):
    """Raised when a function has several return values, but not all of them are named."""

    def __init__(self, contract_name: str, function_name: str):
        super().__init__(
            f"Function {contract_name}.{function_name} has multiple return values "
            "but not all are named."
        )
        self.contract_name = contract_name
        self.function_name = function_name


class TypeMapper:
    """
    Maps ABI types of a contract's functions to Python type annotations.

    Structs are mapped to ``TypedDict`` records; their definitions are accumulated
    in :py:attr:`records` (in dependency order) and have to be emitted
    before the annotations that refer to them.
    """

    def __init__(self, contract_name: str, records: None | dict[str, str] = None):
        self.contract_name = contract_name
        self.records = records if records is not None else {}
        """Record definitions keyed by the record name."""

    def annotation(self, function_name: str, parameter: AbiParameter, path: str) -> str:
        """
        Returns the annotation for a value of the parameter's type.
        ``path`` is used to name the record if the parameter is a struct without ``internalType``.
        """
        return self._map_type(function_name, parameter, parameter.type, self._record_name(path))

    def return_annotation(self, function: AbiFunction) -> str:
        """Returns the annotation of the value returned by the function's local call."""
        outputs = function.outputs
        if len(outputs) == 0:
            return "None"
        if len(outputs) == 1:
            return self.annotation(function.name, outputs[0], function.name + "Output")
        if not all(output.name for output in outputs):
            raise UnnamedMultiOutput(self.contract_name, function.name)
        return self._add_record(
            self._record_name(function.name + "Result"), function.name, outputs
        )

    def _map_type(self, function_name: str, parameter: AbiParameter, type_: str, path: str) -> str:
        if match := _ARRAY_RE.match(type_):
            element = self._map_type(function_name, parameter, match.group(1), path)
            return f"list[{element}]"

        if type_ == "tuple":
            if not parameter.components:
                raise MalformedAbi(f"Expected components when type is {parameter.type}")
            return self._add_record(
                self._struct_name(parameter, path), function_name, parameter.components
            )

        if type_ in _SIMPLE_TYPES:
            return _SIMPLE_TYPES[type_]
        if _INTEGER_RE.match(type_):
            return "int"
        if _BYTES_RE.match(type_):
            return "bytes"

        raise UnsupportedType(self.contract_name, function_name, parameter)

    def _struct_name(self, parameter: AbiParameter, path: str) -> str:
        # `internalType` looks like `struct Contract.Name` or `struct Name[]`
        internal_type = parameter.internal_type or ""
        if internal_type.startswith("struct "):
            struct_name = internal_type[len("struct ") :].split("[", 1)[0]
            return _IDENTIFIER_RE.sub("_", struct_name)
        return path

    def _record_name(self, path: str) -> str:
        return _IDENTIFIER_RE.sub("_", f"{self.contract_name}_{path}")

    def _add_record(
        self, name: str, function_name: str, components: Sequence[AbiParameter]
    ) -> str:
        fields = []
        for index, component in enumerate(components):
            field_name = component.name or f"_{index}"
            field_path = f"{name}_{field_name}"
            annotation = self._map_type(function_name, component, component.type, field_path)
            fields.append(f"{field_name!r}: {annotation}")

        definition = f"{name} = TypedDict({name!r}, {{{', '.join(fields)}}})"

        # Same-named structs with different fields get distinct records.
        unique_name = name
        counter = 1
        while unique_name in self.records and self.records[unique_name] != definition:
            counter += 1
            unique_name = f"{name}_{counter}"
            definition = f"{unique_name} = TypedDict({unique_name!r}, {{{', '.join(fields)}}})"

        self.records[unique_name] = definition
        return unique_name
