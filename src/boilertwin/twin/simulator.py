from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, replace

import numpy as np
import pandas as pd

from boilertwin.config import SimulatorConfig
from boilertwin.process.model import (
    SimulationState,
    StepOutputs,
    clamp_fuel_flow,
    resolve_anomaly,
    sanitize_delta,
    simulate_step,
)
from boilertwin.twin.display import build_visual_frame

logger = logging.getLogger(__name__)


class ProcessSimulator:
    """Owns one boiler's state and advances it once per rendered frame.

    Readers get immutable snapshots from :meth:`get_state`; every mutation
    swaps the snapshot in a single assignment.
    """

    def __init__(self, config: SimulatorConfig | None = None) -> None:
        self.config = config or SimulatorConfig()
        self._state = self.config.initial_state
        self.last_outputs: StepOutputs | None = None
        self.tick = 0
        self.elapsed_s = 0.0

    def get_state(self) -> SimulationState:
        return self._state

    def set_fuel_flow(self, value: float) -> float:
        fuel_flow = clamp_fuel_flow(float(value))
        if fuel_flow != value:
            logger.debug("Fuel flow %r clamped to %.1f", value, fuel_flow)
        self._state = replace(self._state, fuel_flow=fuel_flow)
        return fuel_flow

    def toggle_anomaly(self, name: str) -> bool:
        anomalies = self._state.anomalies.toggled(name)
        self._state = replace(self._state, anomalies=anomalies)
        active = bool(getattr(anomalies, resolve_anomaly(name)))
        logger.info("Anomaly %s %s", name, "injected" if active else "cleared")
        return active

    def step(self, delta_s: float) -> SimulationState:
        """Advance by one frame; unusable deltas leave the state unchanged."""
        delta = sanitize_delta(delta_s, self.config.max_delta_s)
        if delta <= 0:
            logger.debug("Dropped frame with delta %r", delta_s)
            return self._state
        requested = float(delta_s)
        if delta < requested:
            logger.debug("Frame delta %.3fs clamped to %.3fs", requested, delta)

        next_state, outputs = simulate_step(self._state, delta, self.config.constants)
        self._state = next_state
        self.last_outputs = outputs
        self.tick += 1
        self.elapsed_s += delta
        return next_state

    def reset(self) -> SimulationState:
        self._state = self.config.initial_state
        self.last_outputs = None
        self.tick = 0
        self.elapsed_s = 0.0
        logger.info("Simulator reset to initial conditions")
        return self._state


@dataclass(frozen=True)
class ControlEvent:
    """Operator action applied at ``time_s`` during a scripted run."""

    time_s: float
    fuel_flow: float | None = None
    toggle: str | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.time_s) or self.time_s < 0:
            msg = "time_s must be non-negative"
            raise ValueError(msg)
        if self.fuel_flow is None and self.toggle is None:
            msg = "a control event needs fuel_flow or toggle"
            raise ValueError(msg)
        if self.toggle is not None:
            resolve_anomaly(self.toggle)

    def apply(self, simulator: ProcessSimulator) -> None:
        if self.fuel_flow is not None:
            simulator.set_fuel_flow(self.fuel_flow)
        if self.toggle is not None:
            simulator.toggle_anomaly(self.toggle)


def run_simulation(
    *,
    seconds: float,
    frame_rate_hz: float = 60.0,
    fuel_flow: float | None = None,
    events: Iterable[ControlEvent] = (),
    config: SimulatorConfig | None = None,
    glitch_seed: int | None = 0,
) -> pd.DataFrame:
    """Drive a fresh simulator at a fixed frame rate and record every frame."""
    if not math.isfinite(seconds) or seconds <= 0:
        msg = "seconds must be positive"
        raise ValueError(msg)
    if not math.isfinite(frame_rate_hz) or frame_rate_hz <= 0:
        msg = "frame_rate_hz must be positive"
        raise ValueError(msg)

    simulator = ProcessSimulator(config)
    if fuel_flow is not None:
        simulator.set_fuel_flow(fuel_flow)

    pending = sorted(events, key=lambda event: event.time_s)
    rng = np.random.default_rng(glitch_seed)
    dt_s = 1.0 / float(frame_rate_hz)
    total_frames = max(1, round(seconds * frame_rate_hz))
    rows: list[dict[str, object]] = []

    for frame in range(total_frames):
        frame_time_s = frame * dt_s
        applied: list[str] = []
        while pending and pending[0].time_s <= frame_time_s + 1e-9:
            event = pending.pop(0)
            event.apply(simulator)
            applied.append(event.toggle or f"fuel={simulator.get_state().fuel_flow:.0f}")

        state = simulator.step(dt_s)
        row = build_visual_frame(
            state,
            outputs=simulator.last_outputs,
            tick=simulator.tick,
            elapsed_s=simulator.elapsed_s,
            rng=rng,
            noise=simulator.config.sensor_noise,
        )
        row["events"] = ",".join(applied)
        rows.append(row)

    if pending:
        logger.warning("%d control events scheduled after the end of the run", len(pending))

    df = pd.DataFrame(rows)
    df["max_pressure_bar"] = df["pressure_bar"].cummax()
    df["min_water_level_pct"] = df["water_level_pct"].cummin()
    return df


def build_simulation_context(
    *,
    seconds: float,
    frame_rate_hz: float = 30.0,
    fuel_flow: float | None = None,
    events: Iterable[ControlEvent] = (),
    config: SimulatorConfig | None = None,
) -> dict[str, object]:
    frames = run_simulation(
        seconds=seconds,
        frame_rate_hz=frame_rate_hz,
        fuel_flow=fuel_flow,
        events=events,
        config=config,
    )
    latest = frames.iloc[-1].to_dict() if not frames.empty else {}
    return {
        "frames": frames,
        "latest": latest,
        "seconds": seconds,
        "frame_rate_hz": frame_rate_hz,
        "critical_frames": int(frames["critical_fault"].sum()),
    }


__all__ = [
    "ControlEvent",
    "ProcessSimulator",
    "build_simulation_context",
    "run_simulation",
]
