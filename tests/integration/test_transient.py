"""Integration tests for the implicit transient solver."""

import pytest
import numpy as np
from hydraulic_sim.core.graph import HydraulicNetwork
from hydraulic_sim.core.exceptions import IntegrationError
from hydraulic_sim.components.volume import FixedVolume
from hydraulic_sim.components.sources import PressureSource, MassFlowSource
from hydraulic_sim.components.mechanical import Mass, Fixed, ForceSource
from hydraulic_sim.components.tube import Tube


class TestTransientSolverBasic:
    """Basic transient solver functionality"""

    def test_solve_transient_exists(self):
        """solve_transient method should exist on HydraulicNetwork"""
        net = HydraulicNetwork()
        assert hasattr(net, 'solve_transient')

    def test_default_time_grid(self):
        """A tuple tspan without dt gives 101 output points"""
        net = HydraulicNetwork()
        src = net.add_component(MassFlowSource('src', dm=0.1))
        tank = net.add_component(FixedVolume('tank', vol=1e-3, p_int=0.0))
        net.connect(src.port, tank.port)

        result = net.solve_transient(tspan=(0, 1.0))

        assert len(result.t) == 101
        assert result.t[-1] == pytest.approx(1.0)

    def test_custom_initial_state(self):
        """y0 overrides the assembled defaults"""
        net = HydraulicNetwork()
        mass = net.add_component(Mass('mass', m=2.0))
        _, y0, _, _ = net.assemble()

        y0 = y0.copy()
        y0[1] = 3.0  # v
        result = net.solve_transient(tspan=(0, 1.0), dt=0.1, y0=y0)

        s, v = net.get_component_state(result, 'mass')
        assert np.allclose(v, 3.0)
        assert s[-1] == pytest.approx(3.0)

    def test_wrong_initial_state_shape(self):
        net = HydraulicNetwork()
        net.add_component(Mass('mass', m=2.0))
        with pytest.raises(ValueError, match="shape"):
            net.solve_transient(tspan=(0, 1.0), y0=np.zeros(7))


class TestMechanicalDynamics:
    """Mass driven by a constant force"""

    def test_constant_acceleration(self):
        """v = F/m·t exactly under backward Euler; s lags by a first-order error"""
        net = HydraulicNetwork()
        mass = net.add_component(Mass('mass', m=2.0))
        push = net.add_component(ForceSource('push', f=4.0))
        net.connect(push.flange, mass.flange)

        result = net.solve_transient(tspan=(0, 1.0), dt=1e-3)
        s, v = net.get_component_state(result, 'mass')

        assert v[-1] == pytest.approx(2.0, rel=1e-6)
        assert s[-1] == pytest.approx(1.0, rel=2e-3)

    def test_gravity_against_ground(self):
        """A grounded mass stays put and the ground carries its weight"""
        net = HydraulicNetwork()
        mass = net.add_component(Mass('mass', m=5.0, g=-9.81))
        ground = net.add_component(Fixed('ground'))
        net.connect(mass.flange, ground.flange)

        result = net.solve_transient(tspan=(0, 0.1), dt=1e-2)
        s, v = net.get_component_state(result, 'mass')

        assert np.allclose(v, 0.0, atol=1e-9)
        assert mass.flange.f == pytest.approx(5.0 * 9.81)


class TestSolverFailure:
    """Numerical failures are reported, never masked"""

    @pytest.fixture
    def poisoned(self):
        """Source pressure turns non-finite after t = 0"""
        net = HydraulicNetwork()
        supply = net.add_component(
            PressureSource('supply', p=lambda t: 1e5 if t == 0 else float('nan'))
        )
        tank = net.add_component(FixedVolume('tank', vol=1e-3, p_int=1e5))
        net.connect(supply.port, tank.port)
        return net

    def test_failure_result(self, poisoned):
        with pytest.warns(UserWarning, match="Transient solver failed"):
            result = poisoned.solve_transient(tspan=(0, 0.1), dt=0.05, max_halvings=1)

        assert not result.success
        assert result.status == -2
        assert "Non-finite" in result.message
        assert "supply" in result.message
        assert len(result.t) == 1

    def test_raise_on_failure(self, poisoned):
        with pytest.warns(UserWarning):
            with pytest.raises(IntegrationError) as excinfo:
                poisoned.solve_transient(tspan=(0, 0.1), dt=0.05, max_halvings=0,
                                         raise_on_failure=True)

        assert excinfo.value.status == -2
        assert excinfo.value.t == 0.0


class TestPressureDrivenFlow:
    """Flow set by boundary pressures rather than a flow source"""

    def test_tube_between_pressures(self):
        """A tube between two fixed pressures settles with no storage flow"""
        net = HydraulicNetwork()
        hi = net.add_component(PressureSource('hi', p=1.0e5 + 50.0))
        tube = net.add_component(Tube('tube', N=3, p_int=1e5, area=7.85e-5, length=1.0))
        lo = net.add_component(PressureSource('lo', p=1.0e5))
        net.connect(hi.port, tube.port_a)
        net.connect(tube.port_b, lo.port)

        result = net.solve_transient(tspan=(0, 0.01), dt=1e-3)
        _, into_lo = net.get_port_values(result, lo.port)
        _, from_hi = net.get_port_values(result, hi.port)

        assert into_lo[-1] > 0
        assert into_lo[-1] == pytest.approx(-from_hi[-1], rel=1e-6)


class TestStepAcceptance:
    """Steps are accepted on the size of their residual"""

    @pytest.fixture
    def tank(self):
        """1 m³ accumulator fed at 1 kg/s"""
        net = HydraulicNetwork()
        src = net.add_component(MassFlowSource('src', dm=1.0, p_int=0.0))
        tank = net.add_component(FixedVolume('tank', vol=1.0, p_int=0.0))
        net.connect(src.port, tank.port)
        return net

    def test_single_large_step(self, tank):
        result = tank.solve_transient(tspan=(0, 1.0), dt=1.0)
        assert result.success, result.message

        rho = tank.get_component_state(result, 'tank.volume')[2]
        assert rho[-1] - rho[0] == pytest.approx(1.0, rel=1e-9)

    @pytest.mark.parametrize("method", ['hybr', 'lm'])
    def test_root_fallback_accepted_on_residual(self, tank, method):
        """Without Newton iterations every step comes from scipy.optimize.root"""
        result = tank.solve_transient(tspan=(0, 1.0), dt=0.5, method=method, max_iter=0)
        assert result.success, result.message

        rho = tank.get_component_state(result, 'tank.volume')[2]
        assert rho[-1] - rho[0] == pytest.approx(1.0, rel=1e-6)

    def test_unconverged_step_reported(self):
        """Two pressure sources on one node leave no residual-free step"""
        net = HydraulicNetwork()
        net.add_component(Mass('mass', m=1.0))
        one = net.add_component(PressureSource('one', p=1e5))
        two = net.add_component(PressureSource('two', p=2e5))
        net.connect(one.port, two.port)

        with pytest.warns(UserWarning, match="did not converge"):
            result = net.solve_transient(tspan=(0, 1.0), dt=0.5, max_halvings=0)
        assert not result.success
        assert result.status == -1
