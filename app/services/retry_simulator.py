"""
Simulated retry outcomes per error category
"""
import random
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple

from app.config import settings
from app.models import RetryOutcome
from app.time_utils import isoformat, utcnow


# error_type -> (success message, failure message, response builder)
RetryTemplate = Tuple[str, str, Callable[[bool], Dict]]

RETRY_TEMPLATES: Dict[str, RetryTemplate] = {
    "AUTH_EXPIRED": (
        "Authentication refreshed successfully",
        "Authentication still expired",
        lambda success: {"tokenRefreshed": success},
    ),
    "RATE_LIMIT": (
        "Rate limit window reset",
        "Still rate limited",
        lambda success: {"rateLimitReset": isoformat(utcnow() + timedelta(hours=1))},
    ),
    "CONNECTION_FAILED": (
        "Connection restored",
        "Connection still failing",
        lambda success: {"connectionTest": "pass" if success else "fail"},
    ),
}

DEFAULT_TEMPLATE: RetryTemplate = (
    "Retry successful",
    "Retry failed",
    lambda success: {"retryAttempt": True},
)


class RetrySimulator:
    """Draws a retry outcome with a per-category success probability"""

    def __init__(
        self,
        success_rates: Optional[Dict[str, float]] = None,
        default_rate: Optional[float] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize retry simulator

        Args:
            success_rates: Success probability per error type (uses settings if not provided)
            default_rate: Success probability for other error types
            rng: Random source, injectable for deterministic tests

        Raises:
            ValueError: If a probability is outside [0, 1]
        """
        self.success_rates = dict(settings.retry_success_rates if success_rates is None else success_rates)
        self.default_rate = settings.retry_default_success_rate if default_rate is None else default_rate
        self.rng = rng or random.Random()

        for error_type, rate in list(self.success_rates.items()) + [("default", self.default_rate)]:
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"Retry success rate for {error_type} must be between 0 and 1, got {rate}")

    def success_rate(self, error_type: str) -> float:
        return self.success_rates.get(error_type, self.default_rate)

    def simulate(self, error_type: str) -> RetryOutcome:
        """
        Simulate one retry of an error of the given category

        Args:
            error_type: Category of the failing record

        Returns:
            Outcome whose message and response agree with the drawn success
        """
        success = self.rng.random() < self.success_rate(error_type)
        success_message, failure_message, build_response = RETRY_TEMPLATES.get(error_type, DEFAULT_TEMPLATE)

        return RetryOutcome(
            success=success,
            message=success_message if success else failure_message,
            response=build_response(success)
        )
