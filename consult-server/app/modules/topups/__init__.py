"""Top-up order exports"""

from .exceptions import TopupAlreadyProcessedError, TopupError, TopupNotFoundError
from .models import TopupOrder
from .service import TopupService

__all__ = [
    "TopupAlreadyProcessedError",
    "TopupError",
    "TopupNotFoundError",
    "TopupOrder",
    "TopupService",
]
