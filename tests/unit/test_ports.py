"""Unit tests for port types and compatibility checking."""

import pytest
from hydraulic_sim.core.port import HydraulicPort, MechanicalPort, ScalarPort
from hydraulic_sim.properties.fluid import HydraulicFluid


def test_hydraulic_port_creation():
    """Test basic HydraulicPort instantiation"""
    port = HydraulicPort('port', p_int=1e5)
    assert port.name == 'port'
    assert port.p == 1e5
    assert port.dm == 0.0
    assert port.fluid == HydraulicFluid()
    assert port.initial_potential() == 1e5


def test_mechanical_port_creation():
    """MechanicalPort starts at rest with no force"""
    flange = MechanicalPort('flange')
    assert flange.v == 0.0
    assert flange.f == 0.0
    assert flange.initial_potential() == 0.0


def test_hydraulic_ports_compatible():
    """Any two hydraulic ports connect (connections are undirected)"""
    a = HydraulicPort('a')
    b = HydraulicPort('b')

    assert a.compatible_with(b)
    assert b.compatible_with(a)


def test_hydraulic_mechanical_incompatible():
    """Hydraulic and mechanical ports should not connect"""
    port = HydraulicPort('port')
    flange = MechanicalPort('flange')

    assert not port.compatible_with(flange)
    assert not flange.compatible_with(port)


def test_scalar_port_never_connects():
    """Signal ports are not part of connection sets"""
    signal = ScalarPort('area', value=1.0)

    assert not signal.compatible_with(ScalarPort('other'))
    assert not HydraulicPort('port').compatible_with(signal)


def test_potential_and_flow_aliases():
    """potential/flow map onto p/dm and v/f"""
    port = HydraulicPort('port')
    port.potential = 2e5
    port.flow = 0.3
    assert port.p == 2e5
    assert port.dm == 0.3

    flange = MechanicalPort('flange')
    flange.potential = 1.5
    flange.flow = -40.0
    assert flange.v == 1.5
    assert flange.f == -40.0


def test_scalar_port_update_from_source():
    """ScalarPort.update() refreshes value from its source"""
    signal = ScalarPort('area', value=0.0, source=lambda t: 2.0 * t)
    signal.update(3.0)
    assert signal.value == 6.0


def test_scalar_port_constant_without_source():
    """Without a source the value is held"""
    signal = ScalarPort('area', value=0.5)
    signal.update(10.0)
    assert signal.value == 0.5


def test_port_repr_names_component():
    """repr shows owning component and port name"""
    port = HydraulicPort('port_a')
    assert repr(port) == 'HydraulicPort(unattached.port_a)'
