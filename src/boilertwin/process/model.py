from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace

# External (camelCase) anomaly names mapped onto dataclass fields.
ANOMALY_FIELDS: dict[str, str] = {
    "leak": "leak",
    "overpressureRisk": "overpressure_risk",
    "sensorGlitch": "sensor_glitch",
}


# External state keys mapped onto dataclass fields.
STATE_FIELDS: dict[str, str] = {
    "temperature": "temperature",
    "pressure": "pressure",
    "waterLevel": "water_level",
    "fuelFlow": "fuel_flow",
    "targetPressure": "target_pressure",
    "anomalies": "anomalies",
}


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        msg = f"{name} must be finite"
        raise ValueError(msg)


def reject_unknown_keys(kind: str, payload: dict[str, object], known: set[str]) -> None:
    unknown = sorted(str(key) for key in set(payload) - known)
    if unknown:
        msg = f"unknown {kind}: {', '.join(unknown)}"
        raise ValueError(msg)


@dataclass(frozen=True)
class ProcessConstants:
    ambient_temp_c: float = 20.0
    temp_per_fuel_pct: float = 3.0
    heat_gain_rate: float = 0.5
    heat_loss_rate: float = 0.1
    boiling_point_c: float = 100.0
    pressure_build_rate: float = 0.2
    condensing_rate_bar_per_s: float = 10.0
    relief_valve_setpoint_bar: float = 60.0
    relief_valve_rate_bar_per_s: float = 15.0
    boil_off_rate: float = 0.05
    boil_off_scale: float = 0.01
    leak_rate_pct_per_s: float = 5.0
    feed_pump_setpoint_pct: float = 50.0
    feed_pump_rate_pct_per_s: float = 2.0
    dry_drum_decay_bar_per_s: float = 5.0
    min_pressure_bar: float = 1.0

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            _require_finite(item.name, value)
            if value < 0:
                msg = f"{item.name} must be non-negative"
                raise ValueError(msg)
        if self.min_pressure_bar < 1:
            msg = "min_pressure_bar must be at least 1"
            raise ValueError(msg)

    def target_temp_c(self, fuel_flow_pct: float) -> float:
        """Equilibrium temperature the drum relaxes toward at a given firing rate."""
        return self.ambient_temp_c + (fuel_flow_pct * self.temp_per_fuel_pct)

    def to_dict(self) -> dict[str, float]:
        return {item.name: float(getattr(self, item.name)) for item in fields(self)}

    @staticmethod
    def from_dict(payload: dict[str, object]) -> ProcessConstants:
        known = {item.name for item in fields(ProcessConstants)}
        reject_unknown_keys("process constants", payload, known)
        return ProcessConstants(**{key: float(value) for key, value in payload.items()})


@dataclass(frozen=True)
class Anomalies:
    leak: bool = False
    overpressure_risk: bool = False
    sensor_glitch: bool = False

    @property
    def any_active(self) -> bool:
        return self.leak or self.overpressure_risk or self.sensor_glitch

    def toggled(self, name: str) -> Anomalies:
        attr = resolve_anomaly(name)
        return replace(self, **{attr: not getattr(self, attr)})

    def to_dict(self) -> dict[str, bool]:
        return {
            "leak": self.leak,
            "overpressureRisk": self.overpressure_risk,
            "sensorGlitch": self.sensor_glitch,
        }

    @staticmethod
    def from_dict(payload: dict[str, object]) -> Anomalies:
        values: dict[str, bool] = {}
        for key, value in payload.items():
            if not isinstance(value, bool):
                msg = f"anomaly {key!r} must be true or false"
                raise ValueError(msg)
            values[resolve_anomaly(str(key))] = value
        return Anomalies(**values)


def resolve_anomaly(name: str) -> str:
    """Return the dataclass field for an external or snake_case anomaly name."""
    if name in ANOMALY_FIELDS:
        return ANOMALY_FIELDS[name]
    if name in ANOMALY_FIELDS.values():
        return name
    valid = ", ".join(ANOMALY_FIELDS)
    msg = f"unknown anomaly {name!r}; expected one of: {valid}"
    raise ValueError(msg)


@dataclass(frozen=True)
class SimulationState:
    temperature: float = 80.0
    pressure: float = 10.0
    water_level: float = 60.0
    fuel_flow: float = 20.0
    target_pressure: float = 50.0
    anomalies: Anomalies = field(default_factory=Anomalies)

    def __post_init__(self) -> None:
        for name in ("temperature", "pressure", "water_level", "fuel_flow", "target_pressure"):
            _require_finite(name, getattr(self, name))
        if self.pressure < 1:
            msg = "pressure must be at least 1"
            raise ValueError(msg)
        if not 0 <= self.water_level <= 100:
            msg = "water_level must be between 0 and 100"
            raise ValueError(msg)
        if not 0 <= self.fuel_flow <= 100:
            msg = "fuel_flow must be between 0 and 100"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, object]:
        return {
            "temperature": self.temperature,
            "pressure": self.pressure,
            "waterLevel": self.water_level,
            "fuelFlow": self.fuel_flow,
            "targetPressure": self.target_pressure,
            "anomalies": self.anomalies.to_dict(),
        }

    @staticmethod
    def from_dict(payload: dict[str, object]) -> SimulationState:
        """Build a state from either the camelCase contract keys or field names."""
        known = set(STATE_FIELDS) | set(STATE_FIELDS.values())
        reject_unknown_keys("initial state keys", payload, known)
        values: dict[str, object] = {}
        for key, value in payload.items():
            name = STATE_FIELDS.get(key, key)
            if name in values:
                msg = f"initial state key {key!r} duplicates {name!r}"
                raise ValueError(msg)
            values[name] = value
        anomalies = values.pop("anomalies", {})
        if not isinstance(anomalies, dict):
            msg = "anomalies must be a JSON object"
            raise ValueError(msg)
        return SimulationState(
            **{name: float(value) for name, value in values.items()},
            anomalies=Anomalies.from_dict(anomalies),
        )


@dataclass(frozen=True)
class StepOutputs:
    delta_s: float
    target_temp_c: float
    pressure_change_bar: float
    water_change_pct: float
    relief_valve_venting: bool
    feed_pump_running: bool
    dry_drum: bool


def clamp_fuel_flow(value: float) -> float:
    # NaN from a broken slider binding would otherwise survive min/max.
    if math.isnan(value):
        return 0.0
    return _clamp(value, 0.0, 100.0)


def sanitize_delta(delta_s: object, max_delta_s: float) -> float:
    """Map a frame delta onto [0, max_delta_s]; unusable deltas become 0."""
    try:
        value = float(delta_s)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return min(value, max_delta_s)


def simulate_step(
    state: SimulationState,
    delta_s: float,
    constants: ProcessConstants | None = None,
) -> tuple[SimulationState, StepOutputs]:
    """Advance the drum by ``delta_s`` seconds and return the next state.

    Every formula reads the pre-step snapshot except where noted: pressure and
    boil-off use the new temperature, and the dry-drum penalty uses the new
    water level and new pressure. The input state is never modified.
    """
    if not math.isfinite(delta_s) or delta_s < 0:
        msg = "delta_s must be finite and non-negative"
        raise ValueError(msg)
    c = constants or ProcessConstants()
    anomalies = state.anomalies

    # 1. Asymmetric first-order relaxation toward the firing-rate target.
    target_temp = c.target_temp_c(state.fuel_flow)
    temp_diff = target_temp - state.temperature
    rate = c.heat_gain_rate if temp_diff >= 0 else c.heat_loss_rate
    new_temp = state.temperature + temp_diff * delta_s * rate

    # 2. Drum pressure from superheat, with the relief valve acting on the old pressure.
    superheat = new_temp - c.boiling_point_c
    if superheat > 0:
        pressure_change = superheat * c.pressure_build_rate * delta_s
    else:
        pressure_change = -c.condensing_rate_bar_per_s * delta_s

    relief_valve_venting = (
        state.pressure > c.relief_valve_setpoint_bar and not anomalies.overpressure_risk
    )
    if relief_valve_venting:
        pressure_change -= c.relief_valve_rate_bar_per_s * delta_s

    new_pressure = max(c.min_pressure_bar, state.pressure + pressure_change)

    # 3. Water inventory: boil-off, leak and feed pump compete independently.
    water_change = 0.0
    if superheat > 0:
        water_change -= c.boil_off_rate * superheat * c.boil_off_scale * delta_s
    if anomalies.leak:
        water_change -= c.leak_rate_pct_per_s * delta_s

    feed_pump_running = state.water_level < c.feed_pump_setpoint_pct
    if feed_pump_running:
        water_change += c.feed_pump_rate_pct_per_s * delta_s

    new_water_level = _clamp(state.water_level + water_change, 0.0, 100.0)

    # 4. No steam generation from an empty drum.
    dry_drum = new_water_level <= 0
    if dry_drum:
        new_pressure = max(c.min_pressure_bar, new_pressure - c.dry_drum_decay_bar_per_s * delta_s)

    next_state = replace(
        state,
        temperature=new_temp,
        pressure=new_pressure,
        water_level=new_water_level,
    )
    outputs = StepOutputs(
        delta_s=delta_s,
        target_temp_c=target_temp,
        pressure_change_bar=new_pressure - state.pressure,
        water_change_pct=new_water_level - state.water_level,
        relief_valve_venting=relief_valve_venting,
        feed_pump_running=feed_pump_running,
        dry_drum=dry_drum,
    )
    return next_state, outputs


__all__ = [
    "ANOMALY_FIELDS",
    "STATE_FIELDS",
    "Anomalies",
    "ProcessConstants",
    "SimulationState",
    "StepOutputs",
    "clamp_fuel_flow",
    "reject_unknown_keys",
    "resolve_anomaly",
    "sanitize_delta",
    "simulate_step",
]
