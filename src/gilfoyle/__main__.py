"""Allow `python -m gilfoyle` to launch the REPL."""

from gilfoyle.main import cli

cli()
