from boilertwin.twin.display import AlarmStatus, build_visual_frame, classify_alarms, sensor_readings
from boilertwin.twin.simulator import (
    ControlEvent,
    ProcessSimulator,
    build_simulation_context,
    run_simulation,
)

__all__ = [
    "AlarmStatus",
    "ControlEvent",
    "ProcessSimulator",
    "build_simulation_context",
    "build_visual_frame",
    "classify_alarms",
    "run_simulation",
    "sensor_readings",
]
