import json
import logging
import sys
import time
from typing import Any, Dict, List
from pydantic import BaseModel, Field

from rampmerge.controllers.base import Controller
from rampmerge.controllers.implementations import FixedController, ScheduleController, SignalChange
from rampmerge.domain.models import SignalName, SignalState, SimulationSettings
from rampmerge.kernel.simulation_kernel import SimulationKernel
from rampmerge.kernel.snapshot_builder import SnapshotBuilder
from rampmerge.logging_setup import setup_logging

log = logging.getLogger(__name__)

class ExperimentConfig(BaseModel):
    settings: SimulationSettings = SimulationSettings()
    maxTicks: int = Field(40000, gt=0)
    sampleEvery: int = Field(100, gt=0)
    signals: Dict[SignalName, SignalState] = {}
    schedule: List[SignalChange] = []

def build_controller(experiment: ExperimentConfig) -> Controller:
    if experiment.schedule:
        return ScheduleController(experiment.schedule)
    return FixedController(experiment.signals)

def run_experiment(experiment: ExperimentConfig) -> Dict[str, Any]:
    kernel = SimulationKernel()
    kernel.initialize(experiment.settings)
    controller = build_controller(experiment)
    builder = SnapshotBuilder()

    samples = [builder.build(kernel.state, kernel.signals.as_dict())]
    completion = None
    for i in range(experiment.maxTicks):
        controller.run_tick(kernel)
        completion = kernel.run_tick()
        if completion or (i + 1) % experiment.sampleEvery == 0:
            samples.append(builder.build(kernel.state, kernel.signals.as_dict()))
        if completion:
            break

    peak = max(sample["congestion"] for sample in samples)
    if completion is None:
        log.warning("Experiment stopped at tick limit %d with %d vehicles active",
                    experiment.maxTicks, len(kernel.state.active_vehicles))

    return {
        "settings": experiment.settings.model_dump(mode="json"),
        "completed": completion is not None,
        "completion": completion.model_dump() if completion else None,
        "peakCongestion": peak,
        "samples": samples,
    }

def run_headless_experiment(config_path: str, output_path: str) -> Dict[str, Any]:
    with open(config_path) as f:
        experiment = ExperimentConfig.model_validate(json.load(f))

    start_time = time.time()
    results = run_experiment(experiment)
    log.info("Experiment finished in %.4fs", time.time() - start_time)

    with open(output_path, 'w') as f:
        json.dump(results, f, indent=2)
    return results

if __name__ == "__main__":
    setup_logging()
    if len(sys.argv) > 2:
        run_headless_experiment(sys.argv[1], sys.argv[2])
    else:
        print("Usage: python -m rampmerge.experiments.run_experiment <config> <output>")
