"""Unit tests for booking pricing strategies."""

import pytest

from carpool.domain.entities import Location, Ride, Waypoint
from carpool.domain.pricing import (
    DistancePricing,
    FlatPricing,
    booking_amount,
    estimate_route_km,
    pricing_for,
)


class TestStrategies:
    def test_flat_rounds_to_cents(self):
        assert FlatPricing(199.999).calculate() == 200.0

    def test_distance_multiplies_rate(self):
        assert DistancePricing(4.5, 120.0).calculate() == 540.0

    def test_distance_rounds_to_cents(self):
        assert DistancePricing(3.333, 10.0).calculate() == 33.33


class TestPricingFor:
    def test_flat_when_no_rate(self):
        ride = Ride(price=450.0)
        assert isinstance(pricing_for(ride), FlatPricing)
        assert booking_amount(ride) == 450.0

    def test_distance_when_rate_and_distance(self):
        ride = Ride(price=450.0, price_per_km=5.0, estimated_distance_km=100.0)
        assert isinstance(pricing_for(ride), DistancePricing)
        assert booking_amount(ride) == 500.0

    def test_rate_without_distance_falls_back_to_flat(self):
        ride = Ride(price=300.0, price_per_km=5.0)
        assert booking_amount(ride) == 300.0


class TestEstimateRoute:
    def test_straight_line(self):
        km = estimate_route_km(Location(0.0, 0.0), Location(0.0, 1.0))
        assert km == pytest.approx(111.19, abs=0.01)

    def test_waypoints_follow_stop_order(self):
        start, end = Location(0.0, 0.0), Location(0.0, 2.0)
        # listed out of order; the detour is measured in stop order
        stops = [Waypoint(0.0, 1.0, stop_order=2), Waypoint(1.0, 1.0, stop_order=1)]
        direct = estimate_route_km(start, end)
        assert estimate_route_km(start, end, stops) > direct

    def test_unlocated_stop_gives_none(self):
        assert estimate_route_km(Location(0.0, 0.0), Location(place_name="Mumbai")) is None
