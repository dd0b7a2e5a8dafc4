import json
import logging
from pathlib import Path

import click

from ._abi import MalformedAbi
from ._codegen import generate_contract_interfaces
from ._type_mapper import UnnamedMultiOutput, UnsupportedType


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(*, verbose: bool) -> None:
    """Typed Python bindings for Ethereum contracts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("generate")
@click.argument(
    "compiler_output", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Where to write the generated module (stdout by default).",
)
def generate(compiler_output: Path, output: None | Path) -> None:
    """Generates contract bindings from the compiler's JSON output."""
    with compiler_output.open() as file:
        try:
            contracts = json.load(file)
        except json.JSONDecodeError as exc:
            message = f"{compiler_output} is not a valid JSON file: {exc}"
            raise click.ClickException(message) from exc

    if not isinstance(contracts, dict):
        raise click.ClickException(f"{compiler_output} does not contain a JSON object")

    try:
        source = generate_contract_interfaces(contracts)
    except (MalformedAbi, UnsupportedType, UnnamedMultiOutput) as exc:
        raise click.ClickException(str(exc)) from exc

    if output is None:
        click.echo(source, nl=False)
    else:
        output.write_text(source)
        click.echo(f"Bindings written to {output}", err=True)
