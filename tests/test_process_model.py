import dataclasses

import pytest

from boilertwin.process.model import (
    Anomalies,
    ProcessConstants,
    SimulationState,
    sanitize_delta,
    simulate_step,
)


def test_full_fuel_heating_step_matches_hand_calculation() -> None:
    state = SimulationState(temperature=80.0, pressure=10.0, water_level=60.0, fuel_flow=100.0)

    next_state, outputs = simulate_step(state, 1.0)

    assert outputs.target_temp_c == pytest.approx(320.0)
    assert next_state.temperature == pytest.approx(200.0)
    assert next_state.pressure == pytest.approx(30.0)
    assert not outputs.relief_valve_venting
    # boil-off only: 0.05 * 100 * 0.01 = 0.05 %/s, pump idle above 50 %
    assert next_state.water_level == pytest.approx(59.95)
    assert not outputs.feed_pump_running


def test_cooling_is_five_times_slower_than_heating() -> None:
    cooling = SimulationState(temperature=80.0, fuel_flow=0.0)
    heating = SimulationState(temperature=80.0, fuel_flow=40.0)

    cooled, cool_outputs = simulate_step(cooling, 0.5)
    heated, heat_outputs = simulate_step(heating, 0.5)

    assert cool_outputs.target_temp_c == pytest.approx(20.0)
    assert heat_outputs.target_temp_c == pytest.approx(140.0)
    assert cooled.temperature == pytest.approx(80.0 - 60.0 * 0.5 * 0.1)
    assert heated.temperature == pytest.approx(80.0 + 60.0 * 0.5 * 0.5)
    assert (heated.temperature - 80.0) == pytest.approx(5.0 * (80.0 - cooled.temperature))


def test_relief_valve_vents_unless_overpressure_anomaly_is_active() -> None:
    state = SimulationState(temperature=20.0, pressure=61.0, fuel_flow=0.0)
    stuck = dataclasses.replace(state, anomalies=Anomalies(overpressure_risk=True))

    vented, vent_outputs = simulate_step(state, 1.0)
    held, held_outputs = simulate_step(stuck, 1.0)

    assert vent_outputs.relief_valve_venting
    assert vented.pressure == pytest.approx(36.0)
    assert not held_outputs.relief_valve_venting
    assert held.pressure == pytest.approx(51.0)


def test_relief_valve_reads_pre_step_pressure() -> None:
    # Pressure crosses 60 during this step, so the valve must stay shut until the next one.
    state = SimulationState(temperature=300.0, pressure=55.0, fuel_flow=100.0)

    next_state, outputs = simulate_step(state, 1.0)

    assert not outputs.relief_valve_venting
    assert next_state.pressure == pytest.approx(55.0 + (310.0 - 100.0) * 0.2)


def test_feed_pump_and_leak_compete_in_same_step() -> None:
    state = SimulationState(
        temperature=20.0,
        water_level=40.0,
        fuel_flow=0.0,
        anomalies=Anomalies(leak=True),
    )

    next_state, outputs = simulate_step(state, 1.0)

    assert outputs.feed_pump_running
    assert next_state.water_level == pytest.approx(40.0 - 5.0 + 2.0)


def test_feed_pump_threshold_uses_pre_step_level() -> None:
    state = SimulationState(
        temperature=20.0,
        water_level=51.0,
        fuel_flow=0.0,
        anomalies=Anomalies(leak=True),
    )

    next_state, outputs = simulate_step(state, 1.0)

    assert not outputs.feed_pump_running
    assert next_state.water_level == pytest.approx(46.0)


def test_dry_drum_pressure_decays_toward_floor() -> None:
    state = SimulationState(
        temperature=20.0,
        pressure=40.0,
        water_level=0.0,
        fuel_flow=0.0,
        anomalies=Anomalies(leak=True),
    )

    pressures = [state.pressure]
    for _ in range(6):
        state, outputs = simulate_step(state, 1.0)
        assert outputs.dry_drum
        assert state.water_level == 0.0
        pressures.append(state.pressure)

    assert pressures == sorted(pressures, reverse=True)
    assert pressures[:4] == pytest.approx([40.0, 25.0, 10.0, 1.0])
    assert min(pressures) == 1.0


def test_dry_drum_penalty_applies_after_pressure_update() -> None:
    # Cold, empty drum: -10 from condensing, then -5 from the dry-drum pass.
    state = SimulationState(
        temperature=20.0,
        pressure=30.0,
        water_level=0.0,
        fuel_flow=0.0,
        anomalies=Anomalies(leak=True),
    )

    next_state, outputs = simulate_step(state, 1.0)

    assert outputs.dry_drum
    # pump adds 2, leak removes 5, level clamps at 0
    assert next_state.water_level == 0.0
    assert next_state.pressure == pytest.approx(15.0)


def test_sensor_glitch_does_not_change_physics() -> None:
    clean = SimulationState(temperature=150.0, pressure=45.0, water_level=35.0, fuel_flow=70.0)
    glitched = dataclasses.replace(clean, anomalies=Anomalies(sensor_glitch=True))

    clean_next, _ = simulate_step(clean, 0.25)
    glitched_next, _ = simulate_step(glitched, 0.25)

    assert clean_next.temperature == glitched_next.temperature
    assert clean_next.pressure == glitched_next.pressure
    assert clean_next.water_level == glitched_next.water_level


def test_simulate_step_does_not_mutate_input() -> None:
    state = SimulationState(fuel_flow=90.0)

    next_state, _ = simulate_step(state, 0.5)

    assert state == SimulationState(fuel_flow=90.0)
    assert next_state is not state


def test_zero_delta_keeps_state() -> None:
    state = SimulationState(temperature=123.0, pressure=12.0, water_level=48.0, fuel_flow=55.0)

    next_state, outputs = simulate_step(state, 0.0)

    assert next_state == state
    assert outputs.pressure_change_bar == 0.0


@pytest.mark.parametrize("delta", [-0.1, float("nan"), float("inf")])
def test_simulate_step_rejects_invalid_delta(delta: float) -> None:
    with pytest.raises(ValueError, match="delta_s"):
        simulate_step(SimulationState(), delta)


def test_sanitize_delta_drops_and_clamps() -> None:
    assert sanitize_delta(0.016, 1.0) == pytest.approx(0.016)
    assert sanitize_delta(12.0, 1.0) == 1.0
    assert sanitize_delta(-0.5, 1.0) == 0.0
    assert sanitize_delta(float("nan"), 1.0) == 0.0
    assert sanitize_delta(float("inf"), 1.0) == 0.0
    assert sanitize_delta(None, 1.0) == 0.0
    assert sanitize_delta("fast", 1.0) == 0.0


def test_anomaly_toggle_accepts_both_spellings() -> None:
    anomalies = Anomalies()

    assert anomalies.toggled("overpressureRisk").overpressure_risk
    assert anomalies.toggled("sensor_glitch").sensor_glitch
    assert anomalies.toggled("leak").toggled("leak") == anomalies
    with pytest.raises(ValueError, match="unknown anomaly"):
        anomalies.toggled("flameout")


def test_state_validation_rejects_out_of_range_values() -> None:
    with pytest.raises(ValueError, match="pressure"):
        SimulationState(pressure=0.5)
    with pytest.raises(ValueError, match="water_level"):
        SimulationState(water_level=101.0)
    with pytest.raises(ValueError, match="fuel_flow"):
        SimulationState(fuel_flow=-1.0)
    with pytest.raises(ValueError, match="temperature"):
        SimulationState(temperature=float("nan"))


def test_constants_validation() -> None:
    with pytest.raises(ValueError, match="leak_rate_pct_per_s"):
        ProcessConstants(leak_rate_pct_per_s=-1.0)
    with pytest.raises(ValueError, match="min_pressure_bar"):
        ProcessConstants(min_pressure_bar=0.5)
    with pytest.raises(ValueError, match="unknown process constants"):
        ProcessConstants.from_dict({"flux_capacitance": 1.21})


def test_state_dict_uses_external_contract_keys() -> None:
    payload = SimulationState().to_dict()

    assert payload == {
        "temperature": 80.0,
        "pressure": 10.0,
        "waterLevel": 60.0,
        "fuelFlow": 20.0,
        "targetPressure": 50.0,
        "anomalies": {"leak": False, "overpressureRisk": False, "sensorGlitch": False},
    }
    assert SimulationState.from_dict(payload) == SimulationState()


def test_anomalies_from_dict_requires_booleans() -> None:
    assert Anomalies.from_dict({"leak": True, "sensor_glitch": False}) == Anomalies(leak=True)
    with pytest.raises(ValueError, match="must be true or false"):
        Anomalies.from_dict({"leak": "false"})
    with pytest.raises(ValueError, match="must be true or false"):
        Anomalies.from_dict({"overpressureRisk": 1})
