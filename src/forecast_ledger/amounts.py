"""Amount parsing for forecast cells."""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext

# Leading float literal; trailing junk is ignored ("12 kr" -> 12).
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_CENTS = Decimal("0.01")


def resolve_amount(raw: object) -> float | None:
    """Parse a cell into a finite float, or ``None``.

    Only the first comma is read as a decimal point; there is no
    thousands-separator handling.
    """
    if raw is None:
        return None
    token = str(raw).strip()
    if not token:
        return None

    token = token.replace(",", ".", 1)
    match = _FLOAT_PREFIX_RE.match(token)
    if not match:
        return None
    try:
        value = float(match.group(0))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def format_amount(value: float) -> str:
    """Render *value* with exactly two decimals, halves rounded away from zero.

    Any finite float is accepted; the working precision grows with the
    magnitude so large values keep every integer digit.
    """
    exact = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + 3)
        return f"{exact.quantize(_CENTS, rounding=ROUND_HALF_UP):.2f}"
