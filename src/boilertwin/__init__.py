"""Boiler twin package public API: drum process model and frame-driven simulator."""

from boilertwin.config import (
    SensorNoise,
    SimulatorConfig,
    load_simulator_config,
    save_simulator_config,
)
from boilertwin.process.model import (
    Anomalies,
    ProcessConstants,
    SimulationState,
    StepOutputs,
    sanitize_delta,
    simulate_step,
)
from boilertwin.twin.display import AlarmStatus, build_visual_frame, classify_alarms, sensor_readings
from boilertwin.twin.simulator import (
    ControlEvent,
    ProcessSimulator,
    build_simulation_context,
    run_simulation,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Anomalies",
    "ProcessConstants",
    "SimulationState",
    "StepOutputs",
    "simulate_step",
    "sanitize_delta",
    "SensorNoise",
    "SimulatorConfig",
    "load_simulator_config",
    "save_simulator_config",
    "ProcessSimulator",
    "ControlEvent",
    "run_simulation",
    "build_simulation_context",
    "AlarmStatus",
    "build_visual_frame",
    "classify_alarms",
    "sensor_readings",
]
