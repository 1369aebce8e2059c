"""
Booking Pricing  (Strategy Pattern)
===================================

A driver publishes either a flat price or a per-km rate together with the
trip's estimated distance.

* **DistancePricing**: ``price_per_km x estimated_distance_km``, used when
  both are set.
* **FlatPricing**: the ride's ``price``.

The amount is fixed on the booking when it is created and is not recomputed
if the ride's pricing changes later.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .distance import path_length_km


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def calculate(self) -> float: ...


class FlatPricing(PricingStrategy):
    def __init__(self, price: float):
        self.price = price

    def calculate(self) -> float:
        return round(float(self.price), 2)


class DistancePricing(PricingStrategy):
    def __init__(self, price_per_km: float, distance_km: float):
        self.price_per_km = price_per_km
        self.distance_km = distance_km

    def calculate(self) -> float:
        return round(self.price_per_km * self.distance_km, 2)


# ── Facade ────────────────────────────────────────────────────────────


def pricing_for(ride) -> PricingStrategy:
    if ride.price_per_km is not None and ride.estimated_distance_km is not None:
        return DistancePricing(ride.price_per_km, ride.estimated_distance_km)
    return FlatPricing(ride.price)


def booking_amount(ride) -> float:
    """Payment amount for a new booking on *ride*."""
    return pricing_for(ride).calculate()


def estimate_route_km(pickup, destination, waypoints=()) -> Optional[float]:
    """Straight-line length of pickup -> waypoints -> destination, ``None`` if any stop is unlocated."""
    stops = [pickup, *sorted(waypoints, key=lambda w: w.stop_order), destination]
    distance = path_length_km(stops)
    return round(distance, 2) if distance is not None else None

