import json
from pathlib import Path

from click.testing import CliRunner

from abibind._cli import cli

CHERRY_JSON = {
    "name": "cherry",
    "type": "function",
    "constant": False,
    "payable": True,
    "stateMutability": "payable",
    "inputs": [],
    "outputs": [],
}


def write_compiler_output(tmp_path: Path) -> Path:
    path = tmp_path / "combined.json"
    path.write_text(json.dumps({"contracts": {"Banana.sol": {"banana": {"abi": [CHERRY_JSON]}}}}))
    return path


def test_generate_to_stdout(tmp_path: Path) -> None:
    compiler_output = write_compiler_output(tmp_path)
    result = CliRunner().invoke(cli, ["generate", str(compiler_output)])
    assert result.exit_code == 0, result.output
    assert "class banana(Generic[Numeric]):" in result.output
    assert "async def cherry_estimateGas(" in result.output


def test_generate_to_file(tmp_path: Path) -> None:
    compiler_output = write_compiler_output(tmp_path)
    destination = tmp_path / "bindings.py"
    result = CliRunner().invoke(
        cli, ["-v", "generate", str(compiler_output), "-o", str(destination)]
    )
    assert result.exit_code == 0, result.output
    assert f"Bindings written to {destination}" in result.output

    source = destination.read_text()
    assert source.startswith("# THIS FILE IS AUTOMATICALLY GENERATED")
    assert "async def cherry_(self, *, sender: None | str = None" in source


def test_missing_compiler_output(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["generate", str(tmp_path / "missing.json")])
    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_generation_error(tmp_path: Path) -> None:
    path = tmp_path / "combined.json"
    abi = [
        {
            "type": "function",
            "name": "pair",
            "stateMutability": "view",
            "inputs": [],
            "outputs": [{"name": "", "type": "uint256"}, {"name": "", "type": "uint256"}],
        }
    ]
    path.write_text(json.dumps({"Pairs.sol": {"Pairs": {"abi": abi}}}))
    result = CliRunner().invoke(cli, ["generate", str(path)])
    assert result.exit_code == 1
    assert "Error: Function Pairs.pair has multiple return values" in result.output


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "combined.json"
    path.write_text("{not json")
    result = CliRunner().invoke(cli, ["generate", str(path)])
    assert result.exit_code == 1
    assert "is not a valid JSON file" in result.output


def test_generate_from_combined_json(tmp_path: Path) -> None:
    path = tmp_path / "combined.json"
    abi = json.dumps([CHERRY_JSON])
    compiler_output = {"contracts": {"contracts/Banana.sol:banana": {"abi": abi}}}
    path.write_text(json.dumps(compiler_output))
    result = CliRunner().invoke(cli, ["generate", str(path)])
    assert result.exit_code == 0, result.output
    assert "class banana(Generic[Numeric]):" in result.output


def test_unexpected_compiler_output(tmp_path: Path) -> None:
    path = tmp_path / "output.json"
    path.write_text(json.dumps([CHERRY_JSON]))
    result = CliRunner().invoke(cli, ["generate", str(path)])
    assert result.exit_code == 1
    assert "does not contain a JSON object" in result.output

    path.write_text(json.dumps({"contracts": {"Banana.sol": {"banana": [CHERRY_JSON]}}}))
    result = CliRunner().invoke(cli, ["generate", str(path)])
    assert result.exit_code == 1
    assert "Error: Expected a mapping for Banana.sol:banana, got list" in result.output
