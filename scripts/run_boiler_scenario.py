from __future__ import annotations

import argparse
import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from boilertwin.config import load_simulator_config
from boilertwin.twin.simulator import ControlEvent, run_simulation

DEFAULT_OUTPUT_DIR = Path("data/processed/scenarios")

logger = logging.getLogger("run_boiler_scenario")


def _parse_event(raw: str) -> ControlEvent:
    """Parse ``TIME:fuel=VALUE`` or ``TIME:ANOMALY`` into a control event."""
    time_part, sep, action = raw.partition(":")
    if not sep or not action:
        msg = f"event must look like '5:leak' or '5:fuel=80', got {raw!r}"
        raise argparse.ArgumentTypeError(msg)
    try:
        time_s = float(time_part)
        if action.startswith("fuel="):
            return ControlEvent(time_s=time_s, fuel_flow=float(action.removeprefix("fuel=")))
        return ControlEvent(time_s=time_s, toggle=action)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def run_scenario(
    *,
    seconds: float,
    frame_rate_hz: float,
    fuel_flow: float | None,
    events: list[ControlEvent],
    config_path: Path | None,
    output_dir: Path,
    glitch_seed: int,
) -> Path:
    start_time = time.perf_counter()
    config = load_simulator_config(config_path)
    df = run_simulation(
        seconds=seconds,
        frame_rate_hz=frame_rate_hz,
        fuel_flow=fuel_flow,
        events=events,
        config=config,
        glitch_seed=glitch_seed,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%SZ")
    output_path = output_dir / f"boiler_scenario_{timestamp}_{len(df)}frames.csv"
    df.to_csv(output_path, index=False)

    latest = df.iloc[-1]
    elapsed_s = time.perf_counter() - start_time
    logger.info("Simulated %d frames in %.2fs", len(df), elapsed_s)
    logger.info(
        "Final state: T=%.1f C, P=%.1f bar, level=%.1f %%, critical frames=%d",
        latest["temperature_c"],
        latest["pressure_bar"],
        latest["water_level_pct"],
        int(df["critical_fault"].sum()),
    )
    logger.info("Wrote frames to: %s", output_path)
    return output_path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a scripted boiler drum scenario and write the frame history as CSV."
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=120.0,
        help="Simulated duration in seconds.",
    )
    parser.add_argument(
        "--frame-rate",
        type=float,
        default=60.0,
        help="Frame rate driving the simulator, in Hz.",
    )
    parser.add_argument(
        "--fuel-flow",
        type=float,
        default=None,
        help="Initial fuel flow percentage (clamped to 0-100).",
    )
    parser.add_argument(
        "--event",
        dest="events",
        action="append",
        type=_parse_event,
        default=[],
        help="Timed operator action, e.g. '30:leak', '45:overpressureRisk' or '10:fuel=90'.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional JSON simulator config.",
    )
    parser.add_argument(
        "--output-dir",
        default=str(DEFAULT_OUTPUT_DIR),
        help="Directory where the CSV output is written.",
    )
    parser.add_argument(
        "--glitch-seed",
        type=int,
        default=0,
        help="Seed for the sensor-glitch display noise.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    run_scenario(
        seconds=args.seconds,
        frame_rate_hz=args.frame_rate,
        fuel_flow=args.fuel_flow,
        events=args.events,
        config_path=Path(args.config) if args.config else None,
        output_dir=Path(args.output_dir),
        glitch_seed=args.glitch_seed,
    )


if __name__ == "__main__":
    main()
