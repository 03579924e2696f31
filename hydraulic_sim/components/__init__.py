"""Component library for hydraulic circuits."""

from hydraulic_sim.components.boundary import Cap, Open
from hydraulic_sim.components.sources import PressureSource, MassFlowSource
from hydraulic_sim.components.mechanical import Mass, Fixed, ForceSource, VelocitySource
from hydraulic_sim.components.valve import ValveBase, Valve, SpoolValve, SpoolValve2Way, orifice_flow
from hydraulic_sim.components.volume import VolumeBase, FixedVolume, DynamicVolume, damper_area
from hydraulic_sim.components.tube import TubeBase, Tube, darcy_weisbach
from hydraulic_sim.components.flow_divider import FlowDivider
from hydraulic_sim.components.actuator import Actuator

__all__ = [
    'Cap',
    'Open',
    'PressureSource',
    'MassFlowSource',
    'Mass',
    'Fixed',
    'ForceSource',
    'VelocitySource',
    'ValveBase',
    'Valve',
    'SpoolValve',
    'SpoolValve2Way',
    'orifice_flow',
    'VolumeBase',
    'FixedVolume',
    'DynamicVolume',
    'damper_area',
    'TubeBase',
    'Tube',
    'darcy_weisbach',
    'FlowDivider',
    'Actuator',
]
