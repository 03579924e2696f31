"""Integration tests for flow splitting."""

import pytest
from hydraulic_sim.core.graph import HydraulicNetwork
from hydraulic_sim.components.flow_divider import FlowDivider
from hydraulic_sim.components.sources import PressureSource, MassFlowSource


def divider_network(dm, n):
    net = HydraulicNetwork()
    src = net.add_component(MassFlowSource('src', dm=dm, p_int=1e5))
    div = net.add_component(FlowDivider('div', p_int=1e5, n=n))
    sink = net.add_component(PressureSource('sink', p=1e5))
    net.connect(src.port, div.port_a)
    net.connect(div.port_b, sink.port)
    return net, div, sink


class TestFlowDividerSplit:
    """port_b carries exactly dm_a/n"""

    @pytest.mark.parametrize("n", [1, 2, 4, 7.5])
    def test_split_law(self, n):
        net, div, sink = divider_network(2.0, n)

        result = net.solve_steady_state()
        assert result.success, result.message

        _, flow = net.get_port_values(result, sink.port)
        assert flow[-1] == pytest.approx(2.0 / n, rel=1e-8)

    def test_excess_goes_to_vent(self):
        """The internal Open takes dm_a - dm_b"""
        net, div, _ = divider_network(2.0, 4)

        result = net.solve_steady_state()
        dm_a, dm_b = net.get_component_state(result, 'div')[:, -1]
        vent = net.get_component_state(result, 'div.open')[:, -1]

        assert dm_a == pytest.approx(2.0)
        assert dm_b == pytest.approx(0.5)
        assert vent[1] == pytest.approx(1.5)

    def test_single_pressure(self):
        """All divider ports share the source pressure"""
        net, div, sink = divider_network(2.0, 4)

        net.solve_steady_state()
        assert div.port_a.p == pytest.approx(1e5)
        assert div.port_b.p == pytest.approx(1e5)
        assert div.open.port.p == pytest.approx(1e5)

    def test_transient_rejected(self):
        """Purely algebraic networks are solved with solve_steady_state()"""
        net, _, _ = divider_network(2.0, 4)
        with pytest.raises(ValueError, match="no differential variables"):
            net.solve_transient(tspan=(0, 1.0))
