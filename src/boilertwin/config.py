from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from boilertwin.process.model import ProcessConstants, SimulationState, reject_unknown_keys

logger = logging.getLogger(__name__)

DEFAULT_MAX_DELTA_S = 1.0


@dataclass(frozen=True)
class SensorNoise:
    """Standard deviation of the display noise injected by a sensor glitch."""

    temperature_c: float = 6.0
    pressure_bar: float = 2.5
    water_level_pct: float = 4.0

    def __post_init__(self) -> None:
        for name, value in self.to_dict().items():
            if not math.isfinite(value) or value < 0:
                msg = f"{name} noise must be a non-negative number"
                raise ValueError(msg)

    def to_dict(self) -> dict[str, float]:
        return {
            "temperature_c": self.temperature_c,
            "pressure_bar": self.pressure_bar,
            "water_level_pct": self.water_level_pct,
        }

    @staticmethod
    def from_dict(payload: dict[str, object]) -> SensorNoise:
        reject_unknown_keys("sensor noise keys", payload, set(SensorNoise().to_dict()))
        return SensorNoise(**{key: float(value) for key, value in payload.items()})


@dataclass(frozen=True)
class SimulatorConfig:
    constants: ProcessConstants = field(default_factory=ProcessConstants)
    initial_state: SimulationState = field(default_factory=SimulationState)
    max_delta_s: float = DEFAULT_MAX_DELTA_S
    sensor_noise: SensorNoise = field(default_factory=SensorNoise)

    def __post_init__(self) -> None:
        if not math.isfinite(self.max_delta_s) or self.max_delta_s <= 0:
            msg = "max_delta_s must be positive"
            raise ValueError(msg)
        if self.initial_state.pressure < self.constants.min_pressure_bar:
            msg = "initial pressure is below min_pressure_bar"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, object]:
        return {
            "constants": self.constants.to_dict(),
            "initial_state": self.initial_state.to_dict(),
            "max_delta_s": self.max_delta_s,
            "sensor_noise": self.sensor_noise.to_dict(),
        }

    @staticmethod
    def from_dict(payload: dict[str, object]) -> SimulatorConfig:
        reject_unknown_keys("simulator config keys", payload, set(SimulatorConfig().to_dict()))
        return SimulatorConfig(
            constants=ProcessConstants.from_dict(dict(payload.get("constants", {}))),
            initial_state=SimulationState.from_dict(dict(payload.get("initial_state", {}))),
            max_delta_s=float(payload.get("max_delta_s", DEFAULT_MAX_DELTA_S)),
            sensor_noise=SensorNoise.from_dict(dict(payload.get("sensor_noise", {}))),
        )


def save_simulator_config(config: SimulatorConfig, config_path: str | Path) -> Path:
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
    return path


def load_simulator_config(config_path: str | Path | None = None) -> SimulatorConfig:
    """Load a config file; ``None`` yields the compiled-in defaults."""
    if config_path is None:
        return SimulatorConfig()

    path = Path(config_path)
    if not path.exists():
        msg = f"Simulator config file does not exist: {path}"
        raise FileNotFoundError(msg)

    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        msg = f"Simulator config must be a JSON object: {path}"
        raise ValueError(msg)
    config = SimulatorConfig.from_dict(payload)
    logger.info("Loaded simulator config from %s", path)
    return config


__all__ = [
    "DEFAULT_MAX_DELTA_S",
    "SensorNoise",
    "SimulatorConfig",
    "load_simulator_config",
    "save_simulator_config",
]
