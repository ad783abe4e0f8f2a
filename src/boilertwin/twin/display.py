from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from boilertwin.config import SensorNoise
from boilertwin.process.model import SimulationState, StepOutputs

PRESSURE_WARNING_BAR = 60.0
PRESSURE_ALARM_BAR = 65.0
PRESSURE_CRITICAL_BAR = 70.0
LOW_WATER_PCT = 20.0
DRUM_PULSE_TEMP_C = 200.0
GLOW_START_TEMP_C = 100.0
GLOW_SPAN_C = 300.0

LEAK_MESSAGE = "CONTAINMENT BREACH DETECTED"
OVERPRESSURE_MESSAGE = "OVERPRESSURE DANGER"


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class AlarmStatus:
    pressure_warning: bool
    pressure_alarm: bool
    pressure_critical: bool
    low_water: bool
    critical_fault: bool
    message: str | None

    @property
    def active(self) -> list[str]:
        names = (
            "pressure_warning",
            "pressure_alarm",
            "pressure_critical",
            "low_water",
            "critical_fault",
        )
        return [name for name in names if getattr(self, name)]


def classify_alarms(state: SimulationState) -> AlarmStatus:
    """Derive operator alarms from the true process state."""
    pressure_critical = state.pressure > PRESSURE_CRITICAL_BAR
    critical_fault = (
        state.anomalies.leak or state.anomalies.overpressure_risk or pressure_critical
    )
    message = None
    if critical_fault:
        message = LEAK_MESSAGE if state.anomalies.leak else OVERPRESSURE_MESSAGE
    return AlarmStatus(
        pressure_warning=state.pressure > PRESSURE_WARNING_BAR,
        pressure_alarm=state.pressure > PRESSURE_ALARM_BAR,
        pressure_critical=pressure_critical,
        low_water=state.water_level < LOW_WATER_PCT,
        critical_fault=critical_fault,
        message=message,
    )


def sensor_readings(
    state: SimulationState,
    *,
    rng: np.random.Generator | None = None,
    noise: SensorNoise | None = None,
) -> dict[str, float]:
    """Return the values an operator display shows.

    A sensor glitch perturbs only these readings; ``state`` is left untouched.
    """
    readings = {
        "temperature_c": state.temperature,
        "pressure_bar": state.pressure,
        "water_level_pct": state.water_level,
    }
    if not state.anomalies.sensor_glitch:
        return readings

    generator = rng if rng is not None else np.random.default_rng()
    sigma = noise or SensorNoise()
    temperature = state.temperature + float(generator.normal(0.0, sigma.temperature_c))
    pressure = state.pressure + float(generator.normal(0.0, sigma.pressure_bar))
    water_level = state.water_level + float(generator.normal(0.0, sigma.water_level_pct))
    return {
        "temperature_c": temperature,
        "pressure_bar": max(0.0, pressure),
        "water_level_pct": _clamp(water_level, 0.0, 100.0),
    }


def build_visual_frame(
    state: SimulationState,
    *,
    outputs: StepOutputs | None = None,
    tick: int = 0,
    elapsed_s: float = 0.0,
    rng: np.random.Generator | None = None,
    noise: SensorNoise | None = None,
) -> dict[str, float | bool | str | None]:
    """Map one simulator snapshot into a renderer-ready frame payload."""
    alarms = classify_alarms(state)
    readings = sensor_readings(state, rng=rng, noise=noise)
    anomalies = state.anomalies
    glow = max(0.0, (state.temperature - GLOW_START_TEMP_C) / GLOW_SPAN_C)

    return {
        "tick": float(tick),
        "time_s": float(elapsed_s),
        "temperature_c": state.temperature,
        "pressure_bar": state.pressure,
        "water_level_pct": state.water_level,
        "fuel_flow_pct": state.fuel_flow,
        "target_pressure_bar": state.target_pressure,
        "display_temperature_c": readings["temperature_c"],
        "display_pressure_bar": readings["pressure_bar"],
        "display_water_level_pct": readings["water_level_pct"],
        "leak": anomalies.leak,
        "overpressure_risk": anomalies.overpressure_risk,
        "sensor_glitch": anomalies.sensor_glitch,
        "pressure_warning": alarms.pressure_warning,
        "pressure_alarm": alarms.pressure_alarm,
        "low_water": alarms.low_water,
        "critical_fault": alarms.critical_fault,
        "fault_message": alarms.message,
        "heater_glow": min(1.0, glow),
        "drum_pulse": anomalies.overpressure_risk or state.temperature > DRUM_PULSE_TEMP_C,
        "danger_light": anomalies.overpressure_risk,
        "water_fill": _clamp(state.water_level / 100.0, 0.0, 1.0),
        "temperature_bar_pct": min(100.0, state.temperature / 3.0),
        "leak_droplets": anomalies.leak,
        "target_temp_c": outputs.target_temp_c if outputs is not None else float("nan"),
        "relief_valve_venting": outputs is not None and outputs.relief_valve_venting,
        "feed_pump_running": outputs is not None and outputs.feed_pump_running,
        "dry_drum": outputs is not None and outputs.dry_drum,
    }


__all__ = [
    "AlarmStatus",
    "LEAK_MESSAGE",
    "OVERPRESSURE_MESSAGE",
    "PRESSURE_ALARM_BAR",
    "PRESSURE_CRITICAL_BAR",
    "PRESSURE_WARNING_BAR",
    "LOW_WATER_PCT",
    "build_visual_frame",
    "classify_alarms",
    "sensor_readings",
]
