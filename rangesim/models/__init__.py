"""
Linear state-space models for the platform simulator.

Builds the transition (F, B) and measurement (H) structures from a
continuity level and an update period.
"""

from .model_builder import (
    CONTROL_DIM,
    MAX_CONTINUITY_LEVEL,
    PLANAR_DOF,
    MeasurementStructure,
    TransitionStructure,
    build_model,
    factorial,
    state_dimension,
    taylor_block,
)

__all__ = [
    'CONTROL_DIM',
    'MAX_CONTINUITY_LEVEL',
    'PLANAR_DOF',
    'MeasurementStructure',
    'TransitionStructure',
    'build_model',
    'factorial',
    'state_dimension',
    'taylor_block',
]
