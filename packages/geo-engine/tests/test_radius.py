import math

import pytest

from geo_engine.models import GeoPoint, Viewport
from geo_engine.radius import RadiusPolicy, center_and_radius


def _viewport(center_lat: float, center_lng: float, half_span: float) -> Viewport:
    return Viewport(
        north_east=GeoPoint(lat=center_lat + half_span, lng=center_lng + half_span),
        south_west=GeoPoint(lat=center_lat - half_span, lng=center_lng - half_span),
    )


def test_center_is_bounds_midpoint() -> None:
    viewport = Viewport(
        north_east=GeoPoint(lat=32.80, lng=-96.75),
        south_west=GeoPoint(lat=32.76, lng=-96.85),
    )
    area = center_and_radius(viewport)
    assert area.center.lat == pytest.approx(32.78)
    assert area.center.lng == pytest.approx(-96.80)


def test_radius_inside_clamp_is_unchanged() -> None:
    # ~0.0127 deg half span gives a corner distance of ~1.8 km around Dallas
    area = center_and_radius(_viewport(32.7767, -96.7970, 0.0127))
    assert 1.6 < area.radius_km < 5.0


@pytest.mark.parametrize("half_span", [0.00001, 0.001, 0.01, 0.1, 1.0, 10.0, 45.0])
def test_radius_is_always_clamped(half_span: float) -> None:
    area = center_and_radius(_viewport(32.7767, -96.7970, half_span))
    assert 1.6 <= area.radius_km <= 5.0


def test_degenerate_viewport_gets_floor() -> None:
    point = GeoPoint(lat=32.7767, lng=-96.7970)
    area = center_and_radius(Viewport(north_east=point, south_west=point))
    assert area.radius_km == 1.6


def test_non_finite_radius_falls_back_to_ceiling() -> None:
    policy = RadiusPolicy()
    assert policy.clamp(math.nan) == 5.0


def test_wide_area_policy_doubles_radius_and_raises_floor() -> None:
    wide = RadiusPolicy().widened()
    assert wide.min_km == 5.0
    assert wide.max_km == 10.0
    assert wide.clamp(0.5) == 5.0
    assert wide.clamp(3.0) == 6.0
    assert wide.clamp(20.0) == 10.0


def test_inverted_policy_is_rejected() -> None:
    with pytest.raises(ValueError):
        RadiusPolicy(min_km=6.0, max_km=5.0)
