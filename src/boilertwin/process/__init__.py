from boilertwin.process.model import (
    Anomalies,
    ProcessConstants,
    SimulationState,
    StepOutputs,
    clamp_fuel_flow,
    sanitize_delta,
    simulate_step,
)

__all__ = [
    "Anomalies",
    "ProcessConstants",
    "SimulationState",
    "StepOutputs",
    "clamp_fuel_flow",
    "sanitize_delta",
    "simulate_step",
]
