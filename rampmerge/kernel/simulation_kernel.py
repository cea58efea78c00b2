import logging
import math
import random
from typing import Any, Dict, List, Optional, Union
from rampmerge.domain.models import (
    Vehicle, VehicleKind, Road, SignalName, SignalState, SimulationPhase,
    SimulationSettings, UpdateMode, CompletionEvent, VehicleView,
    SimulationSnapshot, SimulationOverview
)
from rampmerge.domain.state import SimulationState
from rampmerge.domain.graph import build_ramp_network
from rampmerge.kernel.command_queue import CommandQueue
from rampmerge.kernel.commands import Command
from rampmerge.systems.signal_system import SignalController
from rampmerge.systems.vehicle_system import VehicleSystem
from rampmerge.systems.congestion import CongestionMonitor
from rampmerge.systems.perception import find_leader, find_signal
from rampmerge.arbitration.merge_negotiator import MergeNegotiator
from rampmerge.domain import config

log = logging.getLogger(__name__)

class SimulationKernel:
    def __init__(self):
        self.state = SimulationState(road_network=build_ramp_network())
        self.command_queue = CommandQueue()
        self.signals = SignalController()
        self.vehicle_system = VehicleSystem()
        self.congestion_monitor = CongestionMonitor()
        self.merge_negotiator = MergeNegotiator(self.signals, merge_point=config.MERGE_POINT)
        self.exit_point = config.EXIT_POINT
        self.rng = random.Random()

    def initialize(self, settings: Optional[SimulationSettings] = None, seed: Optional[int] = None):
        settings = settings or self.state.settings
        if seed is not None:
            settings = settings.model_copy(update={"seed": seed})

        self.state.settings = settings
        self.state.tick_id = 0
        self.state.time = 0.0
        self.state.completion = None
        self.rng = random.Random(settings.seed)
        self.signals.reset()
        self._initialize_vehicles()
        self.state.congestion = self.congestion_monitor.measure(self.state.vehicles)
        self.state.phase = SimulationPhase.RUNNING

        main_count = sum(1 for v in self.state.vehicles if v.road == Road.MAIN)
        log.info("Kernel initialized: %d vehicles (%d main, %d ramp), seed %d, %s update",
                 len(self.state.vehicles), main_count, len(self.state.vehicles) - main_count,
                 settings.seed, settings.update_mode.value)

    def _initialize_vehicles(self):
        settings = self.state.settings
        vehicles: List[Vehicle] = []
        next_id = 1

        # Main road: alternating lanes, already moving
        main_count = math.floor(settings.vehicle_count * settings.main_fraction)
        for i in range(main_count):
            kind = VehicleKind.CAR if self.rng.random() < settings.main_car_fraction else VehicleKind.TRUCK
            vehicle = Vehicle.create(next_id, kind, Road.MAIN, lane=i % config.MAIN_LANES,
                                     position=i * settings.main_spacing)
            vehicle.velocity = vehicle.max_velocity * (
                config.MAIN_INITIAL_SPEED_MIN + self.rng.random() * config.MAIN_INITIAL_SPEED_SPREAD)
            vehicles.append(vehicle)
            next_id += 1

        # Ramp: queued from standstill
        for i in range(settings.vehicle_count - main_count):
            kind = VehicleKind.CAR if self.rng.random() < settings.ramp_car_fraction else VehicleKind.TRUCK
            vehicles.append(Vehicle.create(next_id, kind, Road.RAMP, lane=0,
                                           position=i * settings.ramp_spacing))
            next_id += 1

        self.state.vehicles = vehicles

    def reset(self):
        self.command_queue.clear()
        self.signals.reset()
        self.state.vehicles = []
        self.state.tick_id = 0
        self.state.time = 0.0
        self.state.congestion = 0.0
        self.state.completion = None
        self.state.phase = SimulationPhase.READY
        log.info("Kernel reset")

    def queue_command(self, command: Command):
        self.command_queue.add(command)

    def set_signal(self, name: Union[SignalName, str], state: Union[SignalState, str]) -> SignalState:
        return self.signals.set(name, state)

    def run_tick(self, dt: Optional[float] = None) -> Optional[CompletionEvent]:
        # 1. Consume Commands
        for cmd in self.command_queue.drain():
            cmd.execute(self)

        if self.state.phase != SimulationPhase.RUNNING:
            return None

        # 2. Update Vehicles
        dt = self.state.settings.dt if dt is None else dt
        self._update_vehicles(dt)
        self.state.congestion = self.congestion_monitor.measure(self.state.vehicles)

        # 3. Advance Time
        self.state.time += dt
        self.state.tick_id += 1

        return self._check_completion()

    def _update_vehicles(self, dt: float):
        vehicles = self.state.vehicles
        if self.state.settings.update_mode == UpdateMode.SNAPSHOT:
            view = [v.model_copy() for v in vehicles if not v.has_exited]
        else:
            view = vehicles

        # Vehicles are stored in id order
        for v in vehicles:
            if v.has_exited:
                continue
            if v.road == Road.RAMP:
                # Merges always see this pass's earlier merges
                self.merge_negotiator.attempt_merge(v, vehicles)

            signal = find_signal(v, self.signals, self.state.road_network)
            leader = find_leader(v, view)
            self.vehicle_system.advance(v, dt, leader, signal)

            if v.road == Road.MAIN and v.position >= self.exit_point:
                v.has_exited = True

    def _check_completion(self) -> Optional[CompletionEvent]:
        if self.state.active_vehicles:
            return None
        event = CompletionEvent(
            elapsedTime=round(self.state.time, 4),
            ticks=self.state.tick_id,
            vehicleCount=len(self.state.vehicles),
        )
        self.state.completion = event
        self.state.phase = SimulationPhase.COMPLETE
        log.info("All %d vehicles exited after %.2fs (%d ticks)",
                 event.vehicleCount, event.elapsedTime, event.ticks)
        return event

    @property
    def is_complete(self) -> bool:
        return self.state.phase == SimulationPhase.COMPLETE

    def get_state(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            tick=self.state.tick_id,
            time=self.state.time,
            phase=self.state.phase,
            signals=self.signals.as_dict(),
            vehicles=[
                VehicleView(
                    id=v.id, kind=v.kind, road=v.road, lane=v.lane,
                    position=v.position, velocity=v.velocity, hasExited=v.has_exited
                )
                for v in self.state.vehicles
            ],
            activeVehicleCount=len(self.state.active_vehicles),
            congestion=self.state.congestion,
            completion=self.state.completion,
        )

    def get_overview(self) -> SimulationOverview:
        return self.congestion_monitor.overview(self.state.vehicles)

    def get_layout(self) -> Dict[str, Any]:
        return self.state.road_network.describe()
