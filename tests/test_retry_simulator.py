"""
Unit tests for the retry simulator
"""
import random
from datetime import datetime

import pytest

from app.services.retry_simulator import RetrySimulator


class TestRetrySimulator:
    """Test outcome generation per error category"""

    def test_configured_rates(self):
        """Test per-category probabilities from settings"""
        simulator = RetrySimulator()

        assert simulator.success_rate("AUTH_EXPIRED") == 0.7
        assert simulator.success_rate("RATE_LIMIT") == 0.2
        assert simulator.success_rate("CONNECTION_FAILED") == 0.6
        assert simulator.success_rate("SOMETHING_ELSE") == 0.5

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_rejects_out_of_range_rate(self, rate):
        """Test invalid probabilities fail fast"""
        with pytest.raises(ValueError):
            RetrySimulator(success_rates={"AUTH_EXPIRED": rate})

        with pytest.raises(ValueError):
            RetrySimulator(success_rates={}, default_rate=rate)

    def test_auth_expired_outcomes(self):
        """Test AUTH_EXPIRED messages and token flag"""
        success = RetrySimulator(success_rates={"AUTH_EXPIRED": 1.0}).simulate("AUTH_EXPIRED")
        failure = RetrySimulator(success_rates={"AUTH_EXPIRED": 0.0}).simulate("AUTH_EXPIRED")

        assert success.success is True
        assert success.message == "Authentication refreshed successfully"
        assert success.response == {"tokenRefreshed": True}
        assert failure.success is False
        assert failure.message == "Authentication still expired"
        assert failure.response == {"tokenRefreshed": False}

    def test_rate_limit_reports_reset_time(self):
        """Test RATE_LIMIT response carries a reset timestamp"""
        outcome = RetrySimulator(success_rates={"RATE_LIMIT": 0.0}).simulate("RATE_LIMIT")

        assert outcome.message == "Still rate limited"
        reset = outcome.response["rateLimitReset"]
        assert reset.endswith("Z")
        datetime.fromisoformat(reset.replace("Z", "+00:00"))

    def test_connection_failed_outcomes(self):
        """Test CONNECTION_FAILED connection test result"""
        success = RetrySimulator(success_rates={"CONNECTION_FAILED": 1.0}).simulate("CONNECTION_FAILED")
        failure = RetrySimulator(success_rates={"CONNECTION_FAILED": 0.0}).simulate("CONNECTION_FAILED")

        assert success.message == "Connection restored"
        assert success.response == {"connectionTest": "pass"}
        assert failure.message == "Connection still failing"
        assert failure.response == {"connectionTest": "fail"}

    def test_other_categories(self):
        """Test the generic outcome for uncategorised errors"""
        success = RetrySimulator(success_rates={}, default_rate=1.0).simulate("TIMEOUT")
        failure = RetrySimulator(success_rates={}, default_rate=0.0).simulate("TIMEOUT")

        assert success.message == "Retry successful"
        assert failure.message == "Retry failed"
        assert success.response == {"retryAttempt": True}

    def test_observed_rate_matches_probability(self):
        """Test the long-run success ratio with a seeded source"""
        simulator = RetrySimulator(rng=random.Random(1234))

        outcomes = [simulator.simulate("AUTH_EXPIRED").success for _ in range(2000)]

        assert 0.65 < sum(outcomes) / len(outcomes) < 0.75
