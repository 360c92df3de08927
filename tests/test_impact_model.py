"""
Tests for the physical estimator.

Tests cover:
- Mass / energy scaling laws
- Crater diameter and depth formulas, including degenerate energies
- Parameter clamping to the control ranges
- Full impact assessment
"""

import math

import pytest

from defense_api.impact_model import (
    J_PER_MT_TNT,
    PARAM_RANGES,
    ImpactParameters,
    assess_impact,
    asteroid_marker_scale,
    crater_depth_km,
    crater_diameter_km,
    damage_radius_km,
    deflected_ring_radius_km,
    joules_to_megatons,
    kinetic_energy_J,
    mass_kg,
)
from defense_api.terrain import Terrain


# =============================================================================
# MASS & ENERGY
# =============================================================================

class TestMassAndEnergy:
    """Sphere mass and kinetic energy."""

    @pytest.mark.parametrize("d", [0.001, 0.05, 0.3, 1.0, 10.0, 100.0])
    def test_mass_cubic_in_diameter(self, d):
        assert mass_kg(2 * d, 3000.0) == pytest.approx(8 * mass_kg(d, 3000.0), rel=1e-12)

    @pytest.mark.parametrize("rho", [100.0, 1200.0, 3000.0, 8000.0])
    def test_mass_linear_in_density(self, rho):
        assert mass_kg(0.5, 2 * rho) == pytest.approx(2 * mass_kg(0.5, rho), rel=1e-12)

    def test_mass_strictly_increasing(self):
        diameters = [0.01, 0.1, 0.5, 1.0, 5.0]
        masses = [mass_kg(d, 2500.0) for d in diameters]
        assert masses == sorted(masses)
        assert len(set(masses)) == len(masses)

    def test_mass_uses_radius_in_meters(self):
        # 10 km diameter -> 5000 m radius
        expected = (4.0 / 3.0) * math.pi * 5000.0**3 * 3000.0
        assert mass_kg(10.0, 3000.0) == pytest.approx(expected)
        assert mass_kg(10.0, 3000.0) == pytest.approx(1.5708e15, rel=1e-3)

    @pytest.mark.parametrize("v", [1.0, 12.6, 20.0, 50.0])
    def test_energy_quadratic_in_velocity(self, v):
        m = mass_kg(1.0, 3000.0)
        assert kinetic_energy_J(m, 2 * v) == pytest.approx(4 * kinetic_energy_J(m, v), rel=1e-12)

    def test_energy_converts_km_per_s(self):
        assert kinetic_energy_J(2.0, 1.0) == pytest.approx(0.5 * 2.0 * 1000.0**2)

    def test_non_positive_inputs_stay_finite(self):
        for value in (0.0, -1.0):
            m = mass_kg(value, 3000.0)
            assert math.isfinite(m) and m >= 0.0
            m = mass_kg(1.0, value)
            assert math.isfinite(m) and m >= 0.0
            e = kinetic_energy_J(1e12, value)
            assert math.isfinite(e) and e >= 0.0

    def test_megaton_conversion(self):
        assert joules_to_megatons(J_PER_MT_TNT) == pytest.approx(1.0)


# =============================================================================
# CRATER
# =============================================================================

class TestCrater:
    """Crater diameter / depth scaling."""

    def test_zero_energy_has_no_crater(self):
        assert crater_diameter_km(0.0) == 0.0

    @pytest.mark.parametrize("energy", [-1.0, float("nan"), float("inf"), float("-inf")])
    def test_degenerate_energy_clamped_to_zero(self, energy):
        assert crater_diameter_km(energy) == 0.0

    @pytest.mark.parametrize("energy", [1.0, 1e10, J_PER_MT_TNT, 1e23, 1e30])
    def test_positive_energy_finite_and_non_negative(self, energy):
        d = crater_diameter_km(energy)
        assert math.isfinite(d)
        assert d >= 0.0

    def test_one_megaton(self):
        assert crater_diameter_km(J_PER_MT_TNT) == pytest.approx(1.8)

    def test_reference_impactor(self):
        """10 km stony impactor at 20 km/s reproduces the documented formula."""
        m = mass_kg(10.0, 3000.0)
        e = kinetic_energy_J(m, 20.0)
        assert e == pytest.approx(3.1416e23, rel=1e-3)
        mt = e / 4.184e15
        assert crater_diameter_km(e) == pytest.approx(1.8 * mt ** (1 / 3.4))

    @pytest.mark.parametrize("d", [0.001, 0.1, 0.49, 2.0, 50.0])
    @pytest.mark.parametrize("angle", [1.0, 15.0, 45.0, 89.0])
    def test_depth_floor(self, d, angle):
        assert crater_depth_km(d, angle) >= 0.1

    def test_depth_follows_angle_for_large_craters(self):
        assert crater_depth_km(10.0, 90.0) == pytest.approx(2.0)
        assert crater_depth_km(10.0, 30.0) == pytest.approx(1.0)

    def test_depth_never_exceeds_base_depth_above_floor(self):
        for angle in (5.0, 30.0, 60.0, 89.0):
            assert crater_depth_km(20.0, angle) <= 20.0 * 0.2


# =============================================================================
# RADII & MARKERS
# =============================================================================

class TestDerivedRadii:

    def test_damage_radius_bounds(self):
        assert damage_radius_km(0.0) == pytest.approx(1.5)
        assert damage_radius_km(2.0) == pytest.approx(30.0)
        assert damage_radius_km(1e6) == 5000.0

    def test_deflected_ring_floor(self):
        assert deflected_ring_radius_km(0.0) == 5.0
        assert deflected_ring_radius_km(1.0) == 15.0

    def test_asteroid_marker_scale(self):
        assert asteroid_marker_scale(0.01) == 0.01
        assert asteroid_marker_scale(0.5) == pytest.approx(0.05)
        assert asteroid_marker_scale(500.0) == 0.1


# =============================================================================
# PARAMETERS
# =============================================================================

class TestImpactParameters:

    def test_defaults_already_in_range(self):
        p = ImpactParameters()
        assert p.clamped() == p

    def test_out_of_range_values_clamped(self):
        p = ImpactParameters(diameter_km=-3, density_kgm3=1e9, velocity_kms=0, impact_angle_deg=90,
                             latitude=120, longitude=500, delta_v_ms=-5, lead_time_days=-1,
                             bearing_deg=720).clamped()
        assert p.diameter_km == PARAM_RANGES["diameter_km"][0]
        assert p.density_kgm3 == PARAM_RANGES["density_kgm3"][1]
        assert p.velocity_kms == 1.0
        assert p.impact_angle_deg == 89.0
        assert p.latitude == 90.0
        assert p.longitude == 180.0
        assert p.delta_v_ms == 0.0
        assert p.lead_time_days == 0.0
        assert p.bearing_deg == 359.0

    def test_minus_180_longitude_maps_to_180(self):
        assert ImpactParameters(longitude=-180.0).clamped().longitude == 180.0
        assert ImpactParameters(longitude=-400.0).clamped().longitude == 180.0

    def test_non_finite_values_reset_to_default(self):
        p = ImpactParameters(diameter_km=float("nan"), velocity_kms=float("inf")).clamped()
        assert p.diameter_km == ImpactParameters().diameter_km
        assert p.velocity_kms == ImpactParameters().velocity_kms

    def test_lead_time_seconds(self):
        assert ImpactParameters(lead_time_days=365).lead_time_s == 31_536_000


# =============================================================================
# ASSESSMENT
# =============================================================================

class TestAssessImpact:

    def test_ocean_impact(self):
        r = assess_impact(ImpactParameters(latitude=0.0, longitude=-150.0))
        assert r.terrain is Terrain.OCEAN
        assert r.wave_type == "tsunami"

    def test_land_impact(self):
        r = assess_impact(ImpactParameters(latitude=45.0, longitude=90.0))
        assert r.terrain is Terrain.LAND
        assert r.wave_type == "seismic"

    def test_results_consistent(self):
        p = ImpactParameters(diameter_km=1.0, density_kgm3=2600.0, velocity_kms=12.6, impact_angle_deg=30.0)
        r = assess_impact(p)
        assert r.mass_kg == pytest.approx(mass_kg(1.0, 2600.0))
        assert r.energy_J == pytest.approx(kinetic_energy_J(r.mass_kg, 12.6))
        assert r.energy_mt == pytest.approx(r.energy_J / J_PER_MT_TNT)
        assert r.crater_diameter_km == pytest.approx(crater_diameter_km(r.energy_J))
        assert r.crater_depth_km == pytest.approx(crater_depth_km(r.crater_diameter_km, 30.0))

    def test_custom_classifier(self):
        class AllLand:
            def classify(self, lat, lon):
                return Terrain.LAND

        r = assess_impact(ImpactParameters(latitude=0.0, longitude=-150.0), AllLand())
        assert r.terrain is Terrain.LAND
