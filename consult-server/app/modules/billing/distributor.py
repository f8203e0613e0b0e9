"""Session cost and provider/platform split.

All amounts are integer minor units, so "rounded to 2 decimals" is exact: the
provider share is rounded half-up to the paisa and the platform takes the
rest, which makes the two parts always add up to the total.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from .models import Distribution

PROVIDER_SHARE_PERCENT = 80

_CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def distribute(total_amount_cents: int, provider_share_percent: int = PROVIDER_SHARE_PERCENT) -> Distribution:
    if total_amount_cents < 0:
        raise ValueError("Total amount cannot be negative")
    if not 0 <= provider_share_percent <= 100:
        raise ValueError("Provider share must be between 0 and 100 percent")
    provider = (Decimal(total_amount_cents) * provider_share_percent / 100).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    provider_cents = int(provider)
    return Distribution(
        total_amount_cents=total_amount_cents,
        provider_earnings_cents=provider_cents,
        platform_revenue_cents=total_amount_cents - provider_cents,
    )


def billed_minutes(duration_seconds: float) -> int:
    """Partial minutes always count as a whole minute."""
    if duration_seconds <= 0:
        return 0
    return math.ceil(duration_seconds / 60)


def compute_session_cost(rate_per_minute_cents: int, duration_seconds: float) -> int:
    return rate_per_minute_cents * billed_minutes(duration_seconds)


def format_amount(amount_cents: int, currency: str = "INR") -> str:
    symbol = _CURRENCY_SYMBOLS.get(currency, currency)
    sign = "-" if amount_cents < 0 else ""
    whole, fraction = divmod(abs(amount_cents), 100)
    return f"{sign}{symbol}{whole}.{fraction:02d}"


def format_duration(seconds: float) -> str:
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


__all__ = [
    "PROVIDER_SHARE_PERCENT",
    "billed_minutes",
    "compute_session_cost",
    "distribute",
    "format_amount",
    "format_duration",
]
