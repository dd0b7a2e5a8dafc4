from ._cli import cli

cli()
