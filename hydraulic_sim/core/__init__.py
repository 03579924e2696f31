"""Core abstractions for the hydraulic system simulator."""

from hydraulic_sim.core.port import Port, PhysicalPort, HydraulicPort, MechanicalPort, ScalarPort
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.component import Component, CompositeComponent
from hydraulic_sim.core.exceptions import StructuralError, IntegrationError
from hydraulic_sim.core.graph import HydraulicNetwork

__all__ = [
    'Port',
    'PhysicalPort',
    'HydraulicPort',
    'MechanicalPort',
    'ScalarPort',
    'Variable',
    'Component',
    'CompositeComponent',
    'StructuralError',
    'IntegrationError',
    'HydraulicNetwork',
]
