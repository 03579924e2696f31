"""Fluid properties and flow correlations."""

from hydraulic_sim.properties.fluid import (
    HydraulicFluid,
    density,
    liquid_density,
    viscosity,
    friction_factor,
)

__all__ = [
    'HydraulicFluid',
    'density',
    'liquid_density',
    'viscosity',
    'friction_factor',
]
