import pytest

from abibind import (
    AbiEvent,
    AbiEventParameter,
    AbiFunction,
    AbiParameter,
    MalformedAbi,
    Mutability,
    parse_abi,
)

CHERRY_JSON = {
    "name": "cherry",
    "type": "function",
    "constant": False,
    "payable": True,
    "stateMutability": "payable",
    "inputs": [],
    "outputs": [],
}


def test_function_from_json() -> None:
    function = AbiFunction.from_json(CHERRY_JSON)
    assert function.name == "cherry"
    assert function.mutability == Mutability.PAYABLE
    assert function.payable
    assert not function.constant
    assert function.inputs == ()
    assert function.outputs == ()
    assert function.to_json() == CHERRY_JSON


def test_mutability() -> None:
    assert Mutability.PURE.constant
    assert Mutability.VIEW.constant
    assert not Mutability.NONPAYABLE.constant
    assert not Mutability.PAYABLE.constant
    assert Mutability.PAYABLE.payable
    assert not Mutability.NONPAYABLE.payable

    with pytest.raises(MalformedAbi, match="Unknown mutability identifier: sometimes"):
        Mutability.from_json({"stateMutability": "sometimes"})


def test_legacy_mutability_flags() -> None:
    view = AbiFunction.from_json(
        {"name": "get", "type": "function", "constant": True, "inputs": [], "outputs": []}
    )
    assert view.mutability == Mutability.VIEW

    payable = AbiFunction.from_json(
        {"name": "pay", "type": "function", "payable": True, "inputs": [], "outputs": []}
    )
    assert payable.mutability == Mutability.PAYABLE

    nonpayable = AbiFunction.from_json({"name": "set", "type": "function", "inputs": []})
    assert nonpayable.mutability == Mutability.NONPAYABLE
    assert nonpayable.outputs == ()


def test_nested_parameters() -> None:
    parameter = AbiParameter.from_json(
        {
            "name": "order",
            "type": "tuple[]",
            "internalType": "struct Market.Order[]",
            "components": [
                {"name": "maker", "type": "address"},
                {
                    "name": "amounts",
                    "type": "tuple",
                    "components": [{"name": "", "type": "uint256"}],
                },
            ],
        }
    )
    assert parameter.internal_type == "struct Market.Order[]"
    assert parameter.components is not None
    assert parameter.components[0] == AbiParameter(name="maker", type="address")
    assert parameter.components[1].components == (AbiParameter(name="", type="uint256"),)

    # `internalType` is not carried over
    assert parameter.to_json() == {
        "name": "order",
        "type": "tuple[]",
        "components": [
            {"name": "maker", "type": "address"},
            {"name": "amounts", "type": "tuple", "components": [{"name": "", "type": "uint256"}]},
        ],
    }


@pytest.mark.parametrize("type_", ["tuple", "tuple[]", "tuple[2]"])
def test_tuple_without_components(type_: str) -> None:
    with pytest.raises(MalformedAbi, match=r"Expected components when type is tuple"):
        AbiParameter.from_json({"name": "x", "type": type_})


def test_wrong_entry_types() -> None:
    with pytest.raises(MalformedAbi, match="type='event'"):
        AbiEvent.from_json(CHERRY_JSON)
    with pytest.raises(MalformedAbi, match="got 'event'"):
        AbiFunction.from_json({"name": "Foo", "type": "event", "inputs": []})


def test_event_from_json() -> None:
    event = AbiEvent.from_json(
        {
            "name": "Transfer",
            "type": "event",
            "anonymous": False,
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        }
    )
    assert event.name == "Transfer"
    assert not event.anonymous
    assert [param.indexed for param in event.inputs] == [True, True, False]
    assert event.inputs[2] == AbiEventParameter(name="value", type="uint256", indexed=False)
    assert event.to_json()["inputs"][0] == {"name": "from", "type": "address", "indexed": True}


def test_parse_abi() -> None:
    functions, events = parse_abi(
        [
            {"type": "constructor", "stateMutability": "nonpayable", "inputs": []},
            CHERRY_JSON,
            {"type": "event", "name": "Ping", "inputs": [], "anonymous": False},
            {"type": "error", "name": "Oops", "inputs": []},
            {"type": "fallback", "stateMutability": "payable"},
            {"type": "receive", "stateMutability": "payable"},
        ]
    )
    assert [function.name for function in functions] == ["cherry"]
    assert [event.name for event in events] == ["Ping"]
