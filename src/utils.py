from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    """Round to cents, half up"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
