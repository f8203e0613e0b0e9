import pytest

from app.modules.billing import billed_minutes, compute_session_cost, distribute, format_amount, format_duration


def test_residual_cent_goes_to_platform():
    split = distribute(9999)

    assert split.provider_earnings_cents == 7999
    assert split.platform_revenue_cents == 2000
    assert split.provider_earnings_cents + split.platform_revenue_cents == 9999


@pytest.mark.parametrize("total", [0, 1, 2, 3, 5, 7, 99, 101, 12345, 10**9 + 7])
def test_split_always_sums_to_total(total):
    split = distribute(total)

    assert split.provider_earnings_cents + split.platform_revenue_cents == total
    assert split.provider_earnings_cents >= 0
    assert split.platform_revenue_cents >= 0


def test_provider_share_rounds_half_up():
    # 80% of 3 is 2.4 -> 2; 80% of 7 is 5.6 -> 6
    assert distribute(3).provider_earnings_cents == 2
    assert distribute(7).provider_earnings_cents == 6


def test_custom_share():
    split = distribute(1000, provider_share_percent=70)

    assert split.provider_earnings_cents == 700
    assert split.platform_revenue_cents == 300


def test_negative_total_is_rejected():
    with pytest.raises(ValueError):
        distribute(-1)


def test_session_cost_rounds_partial_minutes_up():
    assert compute_session_cost(500, 0) == 0
    assert compute_session_cost(500, 1) == 500
    assert compute_session_cost(500, 60) == 500
    assert compute_session_cost(500, 61) == 1000


def test_billed_minutes_of_negative_duration_is_zero():
    assert billed_minutes(-5) == 0


def test_formatting():
    assert format_amount(9999) == "₹99.99"
    assert format_amount(-250, "USD") == "-$2.50"
    assert format_amount(5, "XYZ") == "XYZ0.05"
    assert format_duration(42) == "42s"
    assert format_duration(125) == "2m 5s"
    assert format_duration(3725) == "1h 2m 5s"
