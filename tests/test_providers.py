from collections import Counter

import pytest

from commute_loadtest.providers import (
    Stop,
    UnknownProviderError,
    assign_providers,
    pick_stop,
    valid_providers,
)


def test_valid_providers_lists_all_keys():
    assert sorted(valid_providers()) == ["cta", "mbta", "mta", "septa"]


@pytest.mark.parametrize("provider", ["cta", "mta", "mbta", "septa"])
def test_pick_stop_belongs_to_provider(provider):
    for _ in range(20):
        stop = pick_stop(provider)
        assert isinstance(stop, Stop)
        assert stop.provider == provider


def test_pick_stop_provider_ids():
    assert pick_stop("septa").provider_id == "septa-rail"
    assert pick_stop("mbta").provider_id == "mbta"
    assert pick_stop("cta").provider_id == "cta-subway"
    assert pick_stop("mta").provider_id == "mta-subway"


def test_pick_stop_unknown_provider_raises():
    with pytest.raises(UnknownProviderError) as info:
        pick_stop("bart")
    assert info.value.provider == "bart"


def test_stop_is_immutable():
    stop = Stop("cta", "cta-subway", "Red", "40900", "N")
    with pytest.raises(AttributeError):
        stop.line = "Purple"
    assert stop.line == "Red"
    assert stop == Stop("cta", "cta-subway", "Red", "40900", "N")


def test_assign_even_split():
    result = assign_providers(10, {"cta": 50, "mta": 50})
    assert Counter(result) == {"cta": 5, "mta": 5}


def test_assign_fills_remainder_to_exact_length():
    dist = {"cta": 33, "mta": 33, "mbta": 34}
    result = assign_providers(10, dist)
    assert len(result) == 10
    counts = Counter(result)
    assert set(counts) == set(dist)
    for provider, pct in dist.items():
        assert counts[provider] >= (pct * 10) // 100


def test_assign_zero_weight_provider_never_used_when_no_remainder():
    result = assign_providers(7, {"cta": 100, "mta": 0})
    assert result == ["cta"] * 7


def test_assign_trims_when_over_100_percent():
    result = assign_providers(4, {"cta": 100, "mta": 100})
    assert len(result) == 4
    assert set(result) <= {"cta", "mta"}


def test_assign_zero_devices():
    assert assign_providers(0, {"cta": 100}) == []


def test_assign_empty_distribution_raises():
    with pytest.raises(ValueError):
        assign_providers(3, {})