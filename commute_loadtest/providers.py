"""Curated transit stops per provider and provider assignment helpers."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class Stop:
    """A single transit stop assignment."""

    provider: str
    provider_id: str
    line: str
    stop_id: str
    direction: str


class UnknownProviderError(LookupError):
    """Raised when no stops are configured for a provider key."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"no stops configured for provider {provider!r}")
        self.provider = provider


def _stops(provider: str, provider_id: str, rows: list[tuple[str, str, str]]) -> tuple[Stop, ...]:
    return tuple(Stop(provider, provider_id, line, stop_id, direction) for line, stop_id, direction in rows)


_STOPS_BY_PROVIDER: dict[str, tuple[Stop, ...]] = {
    "mta": _stops(
        "mta",
        "mta-subway",
        [
            ("A", "A19N", ""),
            ("A", "A19S", ""),
            ("L", "L03N", ""),
            ("L", "L03S", ""),
            ("1", "127N", ""),
            ("1", "127S", ""),
            ("N", "N02N", ""),
            ("N", "N02S", ""),
        ],
    ),
    "cta": _stops(
        "cta",
        "cta-subway",
        [
            ("Red", "40900", "N"),
            ("Red", "40900", "S"),
            ("Blue", "40380", "S"),
            ("Blue", "40380", "N"),
            ("Brn", "40730", "N"),
            ("Brn", "40730", "S"),
            ("G", "40280", "S"),
            ("G", "40280", "N"),
        ],
    ),
    "mbta": _stops(
        "mbta",
        "mbta",
        [
            ("Red", "place-pktrm", "1"),
            ("Red", "place-pktrm", "0"),
            ("Orange", "place-dwnxg", "0"),
            ("Orange", "place-dwnxg", "1"),
            ("Green-B", "place-kenmore", "0"),
            ("Green-B", "place-kenmore", "1"),
        ],
    ),
    "septa": _stops(
        "septa",
        "septa-rail",
        [
            ("NHSL", "PENN_CENTER", "N"),
            ("NHSL", "PENN_CENTER", "S"),
            ("PAOLI", "30TH_STREET", "E"),
            ("PAOLI", "30TH_STREET", "W"),
        ],
    ),
}


def pick_stop(provider: str) -> Stop:
    """Return a random stop for the given provider key (e.g. "cta", "mta")."""
    stops = _STOPS_BY_PROVIDER.get(provider)
    if not stops:
        raise UnknownProviderError(provider)
    return random.choice(stops)


def valid_providers() -> list[str]:
    """Return the known provider keys."""
    return list(_STOPS_BY_PROVIDER)


def assign_providers(n: int, dist: Mapping[str, int]) -> list[str]:
    """Return ``n`` provider keys distributed by the percentage map ``dist``.

    Each provider gets ``pct * n // 100`` slots; any shortfall from integer
    division is filled by cycling through the providers, then the result is
    shuffled and trimmed to ``n``.
    """
    if n <= 0:
        return []
    if not dist:
        raise ValueError("provider distribution is empty")

    weighted = [provider for provider, pct in dist.items() for _ in range((pct * n) // 100)]
    while len(weighted) < n:
        for provider in dist:
            weighted.append(provider)
            if len(weighted) >= n:
                break

    random.shuffle(weighted)
    return weighted[:n]