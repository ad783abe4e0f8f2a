from __future__ import annotations

import time

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from boilertwin.config import SimulatorConfig
from boilertwin.process.model import SimulationState
from boilertwin.twin.display import (
    LOW_WATER_PCT,
    PRESSURE_ALARM_BAR,
    PRESSURE_CRITICAL_BAR,
    PRESSURE_WARNING_BAR,
    build_visual_frame,
)
from boilertwin.twin.simulator import ProcessSimulator

st.set_page_config(page_title="Boiler Twin Console", layout="wide")

st.markdown(
    """
<style>
.stApp {
    background-color: #05080d;
    color: #67e8f9;
    font-family: "JetBrains Mono", "SFMono-Regular", monospace;
}
[data-testid="stSidebar"] {
    background-color: #0b1118;
    border-right: 1px solid #155e75;
}
[data-testid="stMetric"] {
    background-color: #0b1118;
    border: 1px solid #0e7490;
    border-radius: 6px;
    padding: 10px 12px;
}
h1, h2, h3 {
    color: #a5f3fc;
}
</style>
""",
    unsafe_allow_html=True,
)

PLOT_TEMPLATE = "plotly_dark"
ACCENT_CYAN = "#22d3ee"
ACCENT_RED = "#ef4444"
ACCENT_ORANGE = "#f97316"
ACCENT_BLUE = "#3b82f6"
MAX_HISTORY = 1800

ANOMALY_BUTTONS = (
    ("leak", "PIPE LEAK", "ACTIVE"),
    ("overpressureRisk", "VALVE FAILURE", "FIXED CLOSED"),
    ("sensorGlitch", "SENSOR NOISE", "ACTIVE"),
)


def _session_simulator() -> ProcessSimulator:
    if "simulator" not in st.session_state:
        st.session_state["simulator"] = ProcessSimulator(SimulatorConfig())
        st.session_state["rng"] = np.random.default_rng()
        st.session_state["history"] = []
        st.session_state["last_tick"] = None
        st.session_state["running"] = True
    return st.session_state["simulator"]


def _advance(simulator: ProcessSimulator) -> None:
    now = time.perf_counter()
    last_tick = st.session_state.get("last_tick")
    st.session_state["last_tick"] = now
    if last_tick is None:
        return
    simulator.step(now - last_tick)


def _record(frame: dict[str, object]) -> pd.DataFrame:
    history: list[dict[str, object]] = st.session_state["history"]
    history.append(frame)
    if len(history) > MAX_HISTORY:
        del history[: len(history) - MAX_HISTORY]
    return pd.DataFrame(history)


def _pressure_gauge(value: float) -> go.Figure:
    fig = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=value,
            number={"suffix": " bar", "valueformat": ".1f"},
            title={"text": "Drum Pressure"},
            gauge={
                "axis": {"range": [0, 100]},
                "bar": {"color": ACCENT_RED if value > PRESSURE_WARNING_BAR else ACCENT_CYAN},
                "steps": [
                    {"range": [PRESSURE_WARNING_BAR, PRESSURE_ALARM_BAR], "color": "#3f1d1d"},
                    {"range": [PRESSURE_ALARM_BAR, 100], "color": "#7f1d1d"},
                ],
                "threshold": {"line": {"color": ACCENT_RED, "width": 3}, "value": PRESSURE_CRITICAL_BAR},
            },
        )
    )
    fig.update_layout(template=PLOT_TEMPLATE, height=260, margin=dict(l=20, r=20, t=50, b=10))
    return fig


def _drum_figure(frame: dict[str, object]) -> go.Figure:
    fill = float(frame["water_fill"])
    glow = float(frame["heater_glow"])
    shell_color = ACCENT_RED if frame["drum_pulse"] else ACCENT_CYAN
    fig = go.Figure()
    fig.add_shape(
        type="rect",
        x0=0.0,
        x1=4.0,
        y0=-1.0,
        y1=-1.0 + 2.0 * fill,
        fillcolor=ACCENT_BLUE,
        opacity=0.7,
        line_width=0,
    )
    fig.add_shape(
        type="rect",
        x0=0.0,
        x1=4.0,
        y0=-1.0,
        y1=1.0,
        line=dict(color=shell_color, width=3),
    )
    fig.add_shape(
        type="rect",
        x0=0.4,
        x1=3.6,
        y0=-1.45,
        y1=-1.2,
        fillcolor=f"rgba({int(255 * glow)}, {int(51 * glow)}, 0, {0.25 + 0.75 * glow:.2f})",
        line_width=0,
    )
    if frame["leak_droplets"]:
        xs = np.linspace(1.2, 2.8, 6)
        fig.add_trace(
            go.Scatter(
                x=xs,
                y=-1.7 - 0.15 * np.abs(np.sin(xs * 5.0)),
                mode="markers",
                marker=dict(color=ACCENT_BLUE, size=8),
                name="Leak",
            )
        )
    fig.update_xaxes(visible=False, range=[-0.3, 4.3])
    fig.update_yaxes(visible=False, range=[-2.1, 1.3])
    fig.update_layout(
        template=PLOT_TEMPLATE,
        height=260,
        showlegend=False,
        title="Drum",
        margin=dict(l=10, r=10, t=50, b=10),
    )
    return fig


def _trend_figure(history: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=history["time_s"],
            y=history["display_pressure_bar"],
            mode="lines",
            name="Pressure (bar)",
            line=dict(color=ACCENT_RED, width=2.2),
        )
    )
    fig.add_trace(
        go.Scatter(
            x=history["time_s"],
            y=history["display_water_level_pct"],
            mode="lines",
            name="Water level (%)",
            line=dict(color=ACCENT_BLUE, width=2.2),
        )
    )
    fig.add_trace(
        go.Scatter(
            x=history["time_s"],
            y=history["display_temperature_c"],
            mode="lines",
            name="Temperature (degC)",
            line=dict(color=ACCENT_ORANGE, width=2.0, dash="dot"),
            yaxis="y2",
        )
    )
    fig.update_layout(
        template=PLOT_TEMPLATE,
        title="Live Trends",
        xaxis_title="Time (s)",
        yaxis=dict(title="bar / %"),
        yaxis2=dict(title="degC", overlaying="y", side="right"),
    )
    return fig


simulator = _session_simulator()

with st.sidebar:
    st.header("Manual Override")
    state: SimulationState = simulator.get_state()
    fuel_flow = st.slider("Fuel flow control (%)", 0, 100, int(round(state.fuel_flow)))
    if float(fuel_flow) != state.fuel_flow:
        simulator.set_fuel_flow(float(fuel_flow))

    st.header("Inject Faults")
    for name, label, active_label in ANOMALY_BUTTONS:
        active = simulator.get_state().anomalies.to_dict()[name]
        caption = f"{label} ({active_label})" if active else label
        if st.button(caption, key=f"toggle_{name}", width="stretch"):
            simulator.toggle_anomaly(name)
            # Captions above were drawn from the pre-click state.
            st.rerun()

    st.header("Runtime")
    st.session_state["running"] = st.toggle("Running", value=st.session_state["running"])
    refresh_s = st.slider("UI refresh (seconds)", 0.05, 1.0, 0.2, 0.05)
    if st.button("Reset", width="stretch"):
        simulator.reset()
        st.session_state["history"] = []
        st.session_state["last_tick"] = None

if st.session_state["running"]:
    _advance(simulator)
else:
    st.session_state["last_tick"] = None

frame = build_visual_frame(
    simulator.get_state(),
    outputs=simulator.last_outputs,
    tick=simulator.tick,
    elapsed_s=simulator.elapsed_s,
    rng=st.session_state["rng"],
    noise=simulator.config.sensor_noise,
)
history = _record(frame)

st.title("Boiler Drum Digital Twin")
st.caption(f"LIVE RUN | tick {simulator.tick} | t = {simulator.elapsed_s:.1f} s")

if frame["critical_fault"]:
    st.error(f"CRITICAL FAULT: {frame['fault_message']}")

kpi_cols = st.columns(4)
kpi_cols[0].metric("Drum Pressure (bar)", f"{frame['display_pressure_bar']:.1f}")
kpi_cols[1].metric("Water Level (%)", f"{frame['display_water_level_pct']:.0f}")
kpi_cols[2].metric("Temperature (degC)", f"{frame['display_temperature_c']:.0f}")
kpi_cols[3].metric("Fuel Flow (%)", f"{frame['fuel_flow_pct']:.0f}")

if frame["pressure_alarm"]:
    st.warning(f"Drum pressure above {PRESSURE_ALARM_BAR:.0f} bar")
if frame["low_water"]:
    st.warning(f"Water level below {LOW_WATER_PCT:.0f} %")

visual_cols = st.columns(2)
visual_cols[0].plotly_chart(_pressure_gauge(float(frame["display_pressure_bar"])), width="stretch")
visual_cols[1].plotly_chart(_drum_figure(frame), width="stretch")
st.progress(int(frame["temperature_bar_pct"]), text="Heater temperature")

status_cols = st.columns(3)
status_cols[0].metric("Relief valve", "VENTING" if frame["relief_valve_venting"] else "CLOSED")
status_cols[1].metric("Feedwater pump", "RUNNING" if frame["feed_pump_running"] else "IDLE")
status_cols[2].metric("Drum", "DRY" if frame["dry_drum"] else "WETTED")

if len(history) > 2:
    st.plotly_chart(_trend_figure(history), width="stretch")

if st.session_state["running"]:
    time.sleep(refresh_s)
    st.rerun()
