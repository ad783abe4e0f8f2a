def test_import():
    import boilertwin

    assert boilertwin.__version__ == "0.1.0"


def test_public_api_imports() -> None:
    from boilertwin.config import SimulatorConfig, load_simulator_config
    from boilertwin.process.model import (
        Anomalies,
        ProcessConstants,
        SimulationState,
        StepOutputs,
        simulate_step,
    )
    from boilertwin.twin.display import build_visual_frame, classify_alarms
    from boilertwin.twin.simulator import ControlEvent, ProcessSimulator, run_simulation

    assert Anomalies is not None
    assert ProcessConstants is not None
    assert SimulationState is not None
    assert StepOutputs is not None
    assert simulate_step is not None
    assert SimulatorConfig is not None
    assert load_simulator_config is not None
    assert build_visual_frame is not None
    assert classify_alarms is not None
    assert ControlEvent is not None
    assert ProcessSimulator is not None
    assert run_simulation is not None
