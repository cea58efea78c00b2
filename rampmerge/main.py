import asyncio
import logging
import os
import time
from fastapi import FastAPI
from typing import Any, Dict
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from rampmerge.kernel.simulation_kernel import SimulationKernel
from rampmerge.kernel.commands import (
    SetSignalCommand, ToggleSignalCommand, StartCommand, PauseCommand,
    ResumeCommand, ResetCommand
)
from rampmerge.domain.models import (
    SimulationSnapshot, SimulationOverview, SignalName, SignalState, SignalUpdate,
    StartRequest, SimulationSettings, UpdateMode, CompletionEvent, BestTime
)
from rampmerge.domain import config
from rampmerge.logging_setup import setup_logging

log = logging.getLogger(__name__)

def settings_from_env() -> SimulationSettings:
    """Run settings, overridable through RAMPMERGE_* environment variables."""
    return SimulationSettings(
        vehicle_count=int(os.environ.get("RAMPMERGE_VEHICLE_COUNT", config.DEFAULT_VEHICLE_COUNT)),
        seed=int(os.environ.get("RAMPMERGE_SEED", 42)),
        update_mode=UpdateMode(os.environ.get("RAMPMERGE_UPDATE_MODE", UpdateMode.SEQUENTIAL.value)),
    )

# Initialize Kernel
kernel = SimulationKernel()
records = BestTime()

def record_completion(event: CompletionEvent):
    records.runsCompleted += 1
    if records.bestTime is None or event.elapsedTime < records.bestTime:
        records.bestTime = event.elapsedTime
        log.info("New best time: %.2fs", event.elapsedTime)

# Background task for simulation loop
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Start the simulation loop
    setup_logging(getattr(logging, os.environ.get("RAMPMERGE_LOG_LEVEL", "INFO").upper(), logging.INFO))
    kernel.initialize(settings_from_env())
    loop_task = asyncio.create_task(run_simulation())
    yield
    # Shutdown
    loop_task.cancel()

app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

async def run_simulation():
    """Runs the simulation update loop at the configured tick rate"""
    target_hz = float(os.environ.get("RAMPMERGE_TICK_RATE_HZ", config.TICK_RATE_HZ))
    period = 1.0 / target_hz

    while True:
        start_time = time.time()

        # Commands are consumed even while paused; physics only runs while RUNNING
        completion = kernel.run_tick()
        if completion:
            record_completion(completion)

        # Sleep to maintain tick rate
        elapsed = time.time() - start_time
        await asyncio.sleep(max(0.0, period - elapsed))

@app.get("/api/simulation/state", response_model=SimulationSnapshot)
async def get_simulation_state():
    """Returns the current vehicle set, signals and aggregates"""
    return kernel.get_state()

@app.get("/api/simulation/overview", response_model=SimulationOverview)
async def get_simulation_overview():
    """Returns congestion per carriageway"""
    return kernel.get_overview()

@app.get("/api/simulation/layout")
async def get_layout() -> Dict[str, Any]:
    """Returns road geometry for renderers"""
    return kernel.get_layout()

@app.post("/api/simulation/start")
async def start_simulation(request: StartRequest):
    """Re-initializes the run with a new vehicle count"""
    update: Dict[str, Any] = {"vehicle_count": request.vehicleCount}
    if request.seed is not None:
        update["seed"] = request.seed
    settings = kernel.state.settings.model_copy(update=update)
    kernel.queue_command(StartCommand(settings))
    return {"status": "Start queued", "vehicleCount": request.vehicleCount}

@app.post("/api/simulation/pause")
async def pause_simulation():
    kernel.queue_command(PauseCommand())
    return {"status": "Pause queued"}

@app.post("/api/simulation/resume")
async def resume_simulation():
    kernel.queue_command(ResumeCommand())
    return {"status": "Resume queued"}

@app.post("/api/simulation/reset")
async def reset_simulation():
    kernel.queue_command(ResetCommand())
    return {"status": "Reset queued"}

@app.get("/api/signals")
async def get_signals() -> Dict[SignalName, SignalState]:
    """Returns the three signal states"""
    return kernel.signals.as_dict()

@app.post("/api/signals/{name}")
async def set_signal(name: SignalName, update: SignalUpdate):
    """Sets a signal; the change applies on the next tick"""
    kernel.queue_command(SetSignalCommand(name, update.state))
    return {"signal": name, "requested": update.state, "current": kernel.signals.get(name)}

@app.post("/api/signals/{name}/toggle")
async def toggle_signal(name: SignalName):
    """Flips a signal between RED and GREEN on the next tick"""
    kernel.queue_command(ToggleSignalCommand(name))
    return {"signal": name, "current": kernel.signals.get(name)}

@app.get("/api/records/best", response_model=BestTime)
async def get_best_time():
    """Best completion time recorded by this process"""
    return records

@app.get("/")
def read_root():
    return {"status": "Ramp Merge Simulator Running (Deterministic Kernel)"}
