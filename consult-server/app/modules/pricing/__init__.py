"""Provider pricing exports"""

from .exceptions import PricingConfigurationError
from .models import RATE_LABELS, SESSION_TYPES, PricingConfig, SessionType
from .service import PricingService, describe_rate, resolve_rate, validate_pricing

__all__ = [
    "PricingConfig",
    "PricingConfigurationError",
    "PricingService",
    "RATE_LABELS",
    "SESSION_TYPES",
    "SessionType",
    "describe_rate",
    "resolve_rate",
    "validate_pricing",
]
