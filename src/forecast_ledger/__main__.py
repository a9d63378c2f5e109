"""Allow ``python -m forecast_ledger``."""

from forecast_ledger import cli

cli.app()
