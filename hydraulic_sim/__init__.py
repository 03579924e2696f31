"""Acausal component library for isothermal compressible hydraulic circuits."""

from hydraulic_sim.core import (
    HydraulicNetwork,
    HydraulicPort,
    MechanicalPort,
    ScalarPort,
    StructuralError,
    IntegrationError,
)
from hydraulic_sim.properties import HydraulicFluid

__version__ = '0.1.0'

__all__ = [
    'HydraulicNetwork',
    'HydraulicPort',
    'MechanicalPort',
    'ScalarPort',
    'StructuralError',
    'IntegrationError',
    'HydraulicFluid',
]
