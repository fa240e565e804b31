"""Freshness bookkeeping tests."""

from __future__ import annotations

import pytest

from smhi_weather.staleness import StalenessPolicy


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_new_policy_is_due_and_not_fresh() -> None:
    policy = StalenessPolicy(time_func=_Clock())
    assert policy.is_fresh() is False
    assert policy.is_due() is True
    assert policy.age_seconds() is None


def test_completed_fetch_is_fresh_until_max_age() -> None:
    clock = _Clock()
    policy = StalenessPolicy(max_age_seconds=60.0, time_func=clock)
    policy.started()
    policy.completed()

    clock.now += 59.9
    assert policy.is_fresh() is True
    assert policy.is_due() is False

    clock.now += 0.1
    assert policy.age_seconds() == pytest.approx(60.0)
    assert policy.is_fresh() is False
    assert policy.is_due() is True


def test_in_flight_fetch_is_never_due() -> None:
    policy = StalenessPolicy(time_func=_Clock())
    policy.started()
    assert policy.in_flight is True
    assert policy.is_due() is False


def test_failure_makes_data_stale_until_next_success() -> None:
    clock = _Clock()
    policy = StalenessPolicy(max_age_seconds=600.0, time_func=clock)
    policy.started()
    policy.completed()
    clock.now += 5
    policy.started()
    policy.failed()

    assert policy.in_flight is False
    assert policy.last_failed_at == 1005.0
    assert policy.is_fresh() is False

    policy.started()
    policy.completed()
    assert policy.last_failed_at is None
    assert policy.is_fresh() is True


def test_disabled_policy_is_never_fresh() -> None:
    policy = StalenessPolicy(enabled=False, time_func=_Clock())
    policy.started()
    policy.completed()
    assert policy.is_fresh() is False
    assert policy.is_due() is True


@pytest.mark.parametrize("max_age", [0.0, -1.0])
def test_non_positive_max_age_is_rejected(max_age: float) -> None:
    with pytest.raises(ValueError, match="max_age_seconds"):
        StalenessPolicy(max_age_seconds=max_age)


def test_abandoned_fetch_keeps_previous_timestamps() -> None:
    clock = _Clock()
    policy = StalenessPolicy(max_age_seconds=60.0, time_func=clock)
    policy.started()
    policy.completed()
    policy.started()
    clock.now += 10

    policy.abandoned()

    assert policy.in_flight is False
    assert policy.last_completed_at == 1000.0
    assert policy.last_failed_at is None
