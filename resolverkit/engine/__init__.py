"""Engine primitives for running resolvers."""

from resolverkit.engine.pipeline import STATE_SEQUENCE, ResolutionState, Resolver
from resolverkit.engine.recorder import (
    DefaultPhaseRecorder,
    NullPhaseRecorder,
    PhaseRecorder,
    RecordingPhaseRecorder,
)

__all__ = [
    "DefaultPhaseRecorder",
    "NullPhaseRecorder",
    "PhaseRecorder",
    "RecordingPhaseRecorder",
    "ResolutionState",
    "Resolver",
    "STATE_SEQUENCE",
]
