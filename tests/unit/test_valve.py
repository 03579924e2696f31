"""Unit tests for the orifice flow law, damper opening and valve residuals."""

import pytest
import numpy as np
from hydraulic_sim.components.valve import ValveBase, Valve, SpoolValve, orifice_flow
from hydraulic_sim.components.volume import damper_area
from hydraulic_sim.properties.fluid import density


class TestOrificeFlow:
    """Test the signed square-root law"""

    @pytest.mark.parametrize("dp", [1.0, 3e4, 1e5, 2.5e6])
    @pytest.mark.parametrize("area", [0.0, 1e-6, 3e-5])
    def test_symmetry(self, dp, area):
        """Flipping Δp flips the flow with equal magnitude"""
        forward = orifice_flow(dp, 997.0, 0.6, area)
        reverse = orifice_flow(-dp, 997.0, 0.6, area)
        assert reverse == pytest.approx(-forward, rel=1e-12, abs=0.0)

    def test_zero_at_zero_pressure_drop(self):
        """Finite and zero at Δp = 0"""
        assert orifice_flow(0.0, 997.0, 0.6, 1e-5) == 0.0

    def test_magnitude(self):
        """dm = sqrt(2·Δp·ρ/Cd)·area"""
        assert orifice_flow(1e5, 1000.0, 2.0, 1e-4) == pytest.approx(np.sqrt(1e8) * 1e-4)


class TestValveBaseResidual:
    """Test ValveBase equations with prescribed port values"""

    def make(self, **kwargs):
        valve = ValveBase('valve', p_a_int=2e5, p_b_int=1e5, area_int=1e-5, Cd=0.6, **kwargs)
        valve.port_a.p = 2e5
        valve.port_b.p = 1e5
        return valve

    def test_conservation(self):
        valve = self.make()
        valve.port_a.dm = 0.4
        valve.port_b.dm = -0.4
        res = valve.residual(np.array([1e-5]), valve.ports, 0.0)
        assert res[0] == 0.0

    def test_forward_flow_satisfies_law(self):
        """Residual vanishes at the orifice flow (density at port_a)"""
        valve = self.make()
        valve.port_a.dm = orifice_flow(1e5, density(valve.port_a), 0.6, 1e-5)
        res = valve.residual(np.array([1e-5]), valve.ports, 0.0)
        assert res[1] == pytest.approx(0.0, abs=1e-15)

    def test_negative_area_closes_non_reversible(self):
        """Without reversible, a negative area acts as closed"""
        valve = self.make()
        valve.port_a.dm = 0.0
        res = valve.residual(np.array([-1e-5]), valve.ports, 0.0)
        assert res[1] == 0.0

    def test_negative_area_reverses_reversible(self):
        """With reversible, a negative area drives flow from b to a"""
        valve = self.make(reversible=True)
        expected = -orifice_flow(1e5, density(valve.port_a), 0.6, 1e-5)
        valve.port_a.dm = expected
        res = valve.residual(np.array([-1e-5]), valve.ports, 0.0)
        assert res[1] == pytest.approx(0.0, abs=1e-15)

    @pytest.mark.parametrize("area", [0.0, 1e-6, 1e-3])
    def test_directional_reverse_forces_equal_pressure(self, area):
        """Reverse Δp: the residual is Δp itself regardless of area and flow"""
        valve = self.make(directional=True)
        valve.port_a.p = 1e5
        valve.port_b.p = 3e5
        valve.port_a.dm = 0.7
        res = valve.residual(np.array([area]), valve.ports, 0.0)
        assert res[1] == -2e5

    def test_directional_forward_uses_orifice_law(self):
        valve = self.make(directional=True)
        valve.port_a.dm = 0.0
        res = valve.residual(np.array([1e-5]), valve.ports, 0.0)
        assert res[1] == pytest.approx(-orifice_flow(1e5, density(valve.port_a), 0.6, 1e-5))


class TestValveComposites:
    """Test Valve and SpoolValve wiring"""

    def test_valve_forwards_directional(self):
        valve = Valve('v', p_a_int=0.0, p_b_int=0.0, area=1e-5, Cd=0.6, directional=True)
        assert valve.base.directional

    def test_valve_area_signal(self):
        """Callable areas drive the ScalarPort, constants are held"""
        driven = Valve('v', p_a_int=0.0, p_b_int=0.0, area=lambda t: 1e-5 * t, Cd=0.6)
        driven.area.update(2.0)
        assert driven.area.value == pytest.approx(2e-5)

        held = Valve('w', p_a_int=0.0, p_b_int=0.0, area=3e-5, Cd=0.6)
        assert held.area.value == 3e-5
        assert held.base.area_int == 3e-5

    def test_spool_initial_area(self):
        """Spool opening is x·2π·d"""
        spool = SpoolValve('spool', p_a_int=0.0, p_b_int=0.0, x_int=1e-3, Cd=0.6, d=0.01)
        assert spool.valve.area_int == pytest.approx(1e-3 * 2 * np.pi * 0.01)


class TestDamperArea:
    """Test the soft-stop opening law"""

    def test_fully_open_above_region(self):
        assert damper_area(5e-4, 1e-4, 2e-4) == 1.0
        assert damper_area(3e-4, 1e-4, 2e-4) == pytest.approx(1.0)

    def test_closed_at_and_below_minimum(self):
        assert damper_area(1e-4, 1e-4, 2e-4) == 0.0
        assert damper_area(-1e-4, 1e-4, 2e-4) == 0.0

    def test_linear_in_region(self):
        assert damper_area(2e-4, 1e-4, 2e-4) == pytest.approx(0.5)

    def test_monotonic(self):
        vols = np.linspace(0.0, 5e-4, 101)
        areas = [damper_area(v, 1e-4, 2e-4) for v in vols]
        assert all(b >= a for a, b in zip(areas, areas[1:]))

    def test_zero_damping_volume(self):
        """A zero-width region switches directly without dividing by zero"""
        assert damper_area(1e-4, 1e-4, 0.0) == 1.0
        assert damper_area(0.5e-4, 1e-4, 0.0) == 0.0
