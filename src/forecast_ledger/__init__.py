"""forecast-ledger: Turn forecast spreadsheets into flat ledger import rows."""

import logging

__version__ = "0.2.0"

OUTPUT_COLUMNS: list[str] = [
    "amount.currency",
    "amount.stringValue",
    "date",
    "parent.id",
    "parent.type",
    "description",
    "metadata.atlar.category",
]

PARENT_TYPE = "ENTITY"

logging.getLogger(__name__).addHandler(logging.NullHandler())
