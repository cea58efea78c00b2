import unittest
from pydantic import ValidationError
from rampmerge.kernel.simulation_kernel import SimulationKernel
from rampmerge.kernel.commands import (
    SetSignalCommand, ToggleSignalCommand, StartCommand, PauseCommand,
    ResumeCommand, ResetCommand
)
from rampmerge.domain.models import (
    Vehicle, VehicleKind, Road, SignalName, SignalState, SimulationPhase,
    SimulationSettings, UpdateMode
)

def make_kernel(vehicle_count=50, seed=42, update_mode=UpdateMode.SEQUENTIAL):
    kernel = SimulationKernel()
    kernel.initialize(SimulationSettings(vehicle_count=vehicle_count, seed=seed,
                                         update_mode=update_mode))
    return kernel

def check_merges(test, kernel):
    """Wraps the kernel's negotiator so every accepted merge is checked against
    the live vehicle set. Returns the list of merged vehicle ids."""
    negotiator = kernel.merge_negotiator
    attempt = negotiator.attempt_merge
    merged = []

    def checked(vehicle, vehicles):
        gap_front, gap_back = negotiator.measure_gaps(vehicle, kernel.state.vehicles)
        required = negotiator.required_gap(vehicle)
        blocked = negotiator.blocked_by_signal(vehicle)
        accepted = attempt(vehicle, vehicles)
        if accepted:
            test.assertFalse(blocked, f"vehicle {vehicle.id} merged past a red ramp signal")
            test.assertGreater(gap_front, required)
            test.assertGreater(gap_back, required)
            merged.append(vehicle.id)
        return accepted

    negotiator.attempt_merge = checked
    return merged

class TestInitialization(unittest.TestCase):
    def test_placement_policy(self):
        kernel = make_kernel(vehicle_count=50)
        vehicles = kernel.state.vehicles
        main = [v for v in vehicles if v.road == Road.MAIN]
        ramp = [v for v in vehicles if v.road == Road.RAMP]

        self.assertEqual(len(main), 32)
        self.assertEqual(len(ramp), 18)
        self.assertEqual([v.id for v in vehicles], list(range(1, 51)))

        for i, v in enumerate(main):
            self.assertEqual(v.lane, i % 2)
            self.assertEqual(v.position, i * 30.0)
            self.assertGreaterEqual(v.velocity, v.max_velocity * 0.4)
            self.assertLessEqual(v.velocity, v.max_velocity * 0.6)

        for i, v in enumerate(ramp):
            self.assertEqual(v.lane, 0)
            self.assertEqual(v.position, i * 25.0)
            self.assertEqual(v.velocity, 0.0)

        self.assertEqual(kernel.state.phase, SimulationPhase.RUNNING)
        self.assertEqual(set(kernel.signals.as_dict().values()), {SignalState.GREEN})

    def test_vehicle_count_bounds(self):
        for count in (49, 121):
            with self.assertRaises(ValidationError):
                SimulationSettings(vehicle_count=count)
        self.assertEqual(len(make_kernel(vehicle_count=120).state.vehicles), 120)

    def test_seed_override(self):
        kernel = SimulationKernel()
        kernel.initialize(SimulationSettings(vehicle_count=60), seed=7)
        self.assertEqual(kernel.state.settings.seed, 7)
        self.assertEqual(len(kernel.state.vehicles), 60)

class TestTickInvariants(unittest.TestCase):
    def run_and_check(self, kernel, ticks, schedule=None):
        schedule = schedule or {}
        merged = check_merges(self, kernel)
        for tick in range(ticks):
            for name, state in schedule.get(tick, []):
                kernel.queue_command(SetSignalCommand(name, state))

            before = {v.id: (v.position, v.road, v.has_exited) for v in kernel.state.vehicles}
            kernel.run_tick()

            for v in kernel.state.vehicles:
                position, road, exited = before[v.id]
                if exited:
                    self.assertTrue(v.has_exited)
                    self.assertEqual(v.position, position)
                    continue
                self.assertGreaterEqual(v.velocity, 0.0)
                self.assertLessEqual(v.velocity, v.effective_max_velocity + 1e-9)
                self.assertGreaterEqual(v.position, position)
                if road == Road.MAIN:
                    self.assertEqual(v.road, Road.MAIN)
                if v.road != road:
                    self.assertTrue(v.has_merged)
            if kernel.is_complete:
                break
        return merged

    def test_invariants_with_signal_changes(self):
        kernel = make_kernel(vehicle_count=80)
        schedule = {
            50: [(SignalName.RAMP_ENTRY, SignalState.RED)],
            100: [(SignalName.MAIN_MERGE, SignalState.RED), (SignalName.RAMP_MIDDLE, SignalState.RED)],
            250: [(SignalName.MAIN_MERGE, SignalState.GREEN)],
            300: [(SignalName.RAMP_ENTRY, SignalState.GREEN), (SignalName.RAMP_MIDDLE, SignalState.GREEN)],
        }
        self.run_and_check(kernel, 400, schedule)
        self.assertGreaterEqual(kernel.state.congestion, 0.0)

    def test_invariants_in_snapshot_mode(self):
        kernel = make_kernel(vehicle_count=60, update_mode=UpdateMode.SNAPSHOT)
        self.run_and_check(kernel, 300, {20: [(SignalName.RAMP_MIDDLE, SignalState.RED)]})

    def test_merges_obey_gap_law_through_full_run(self):
        schedule = {
            100: [(SignalName.RAMP_MIDDLE, SignalState.RED)],
            900: [(SignalName.RAMP_ENTRY, SignalState.RED)],
            1500: [(SignalName.RAMP_MIDDLE, SignalState.GREEN)],
            1800: [(SignalName.RAMP_ENTRY, SignalState.GREEN)],
        }
        for mode in UpdateMode:
            with self.subTest(mode=mode):
                kernel = make_kernel(vehicle_count=60, update_mode=mode)
                ramp_ids = [v.id for v in kernel.state.vehicles if v.road == Road.RAMP]
                merged = self.run_and_check(kernel, 30000, schedule)
                self.assertTrue(kernel.is_complete)
                self.assertEqual(sorted(merged), ramp_ids)

    def test_second_ramp_vehicle_sees_first_merge_in_same_tick(self):
        for mode in UpdateMode:
            with self.subTest(mode=mode):
                kernel = make_kernel(update_mode=mode)
                kernel.state.vehicles = [
                    Vehicle.create(1, VehicleKind.CAR, Road.MAIN, lane=0, position=0.0, velocity=20.0),
                    Vehicle.create(2, VehicleKind.CAR, Road.RAMP, position=430.0),
                    Vehicle.create(3, VehicleKind.CAR, Road.RAMP, position=455.0),
                ]
                check_merges(self, kernel)
                kernel.run_tick()

                # Lane 1 was empty, so vehicle 2 merges; vehicle 3 would then have an 18 unit back gap
                self.assertEqual([v.road for v in kernel.state.vehicles[1:]], [Road.MAIN, Road.RAMP])
                self.assertTrue(kernel.state.vehicles[1].has_merged)
                self.assertFalse(kernel.state.vehicles[2].has_merged)

    def test_red_ramp_entry_holds_queue_behind_line(self):
        kernel = make_kernel(vehicle_count=50)
        kernel.set_signal(SignalName.RAMP_ENTRY, SignalState.RED)
        held = [v for v in kernel.state.vehicles if v.road == Road.RAMP and 65.0 <= v.position <= 140.0]
        self.assertTrue(held)
        for _ in range(200):
            kernel.run_tick()
        for v in held:
            self.assertEqual(v.velocity, 0.0)
            self.assertEqual(v.road, Road.RAMP)

class TestTermination(unittest.TestCase):
    def assert_completes(self, kernel, max_ticks=30000):
        completion = None
        for _ in range(max_ticks):
            completion = kernel.run_tick()
            if completion:
                break
        self.assertIsNotNone(completion, "simulation did not clear under all-green signals")
        self.assertEqual(kernel.state.phase, SimulationPhase.COMPLETE)
        self.assertTrue(all(v.has_exited for v in kernel.state.vehicles))
        self.assertTrue(all(v.road == Road.MAIN for v in kernel.state.vehicles))
        self.assertEqual(completion.vehicleCount, len(kernel.state.vehicles))
        self.assertAlmostEqual(completion.elapsedTime, completion.ticks * 0.03, places=3)
        self.assertEqual(kernel.state.congestion, 0.0)
        return completion

    def test_all_green_run_clears(self):
        kernel = make_kernel(vehicle_count=50)
        completion = self.assert_completes(kernel)

        # A completed run no longer advances
        kernel.run_tick()
        self.assertEqual(kernel.state.tick_id, completion.ticks)

    def test_update_modes_agree_qualitatively(self):
        sequential = self.assert_completes(make_kernel(vehicle_count=50))
        snapshot = self.assert_completes(make_kernel(vehicle_count=50, update_mode=UpdateMode.SNAPSHOT))
        self.assertGreater(sequential.elapsedTime, 0.0)
        self.assertGreater(snapshot.elapsedTime, 0.0)

class TestCommands(unittest.TestCase):
    def test_signal_change_applies_on_next_tick(self):
        kernel = make_kernel()
        kernel.queue_command(SetSignalCommand("rampEntry", "RED"))
        self.assertEqual(kernel.signals.get(SignalName.RAMP_ENTRY), SignalState.GREEN)

        kernel.run_tick()
        self.assertEqual(kernel.signals.get(SignalName.RAMP_ENTRY), SignalState.RED)

        kernel.queue_command(ToggleSignalCommand(SignalName.RAMP_ENTRY))
        kernel.run_tick()
        self.assertEqual(kernel.signals.get(SignalName.RAMP_ENTRY), SignalState.GREEN)

    def test_unknown_signal_rejected(self):
        kernel = make_kernel()
        with self.assertRaises(ValueError):
            SetSignalCommand("exitGate", "RED")
        with self.assertRaises(ValueError):
            kernel.set_signal("exitGate", SignalState.RED)

    def test_pause_and_resume(self):
        kernel = make_kernel()
        kernel.run_tick()
        kernel.queue_command(PauseCommand())
        kernel.run_tick()
        kernel.run_tick()
        self.assertEqual(kernel.state.phase, SimulationPhase.PAUSED)
        self.assertEqual(kernel.state.tick_id, 1)

        kernel.queue_command(ResumeCommand())
        kernel.run_tick()
        self.assertEqual(kernel.state.phase, SimulationPhase.RUNNING)
        self.assertEqual(kernel.state.tick_id, 2)

    def test_reset_and_restart(self):
        kernel = make_kernel()
        kernel.set_signal(SignalName.MAIN_MERGE, SignalState.RED)
        kernel.queue_command(ResetCommand())
        kernel.run_tick()

        self.assertEqual(kernel.state.phase, SimulationPhase.READY)
        self.assertEqual(kernel.state.vehicles, [])
        self.assertFalse(kernel.signals.is_red(SignalName.MAIN_MERGE))
        kernel.run_tick()
        self.assertEqual(kernel.state.tick_id, 0)

        kernel.queue_command(StartCommand(SimulationSettings(vehicle_count=90)))
        kernel.run_tick()
        self.assertEqual(kernel.state.phase, SimulationPhase.RUNNING)
        self.assertEqual(len(kernel.state.vehicles), 90)
        self.assertEqual(kernel.state.tick_id, 1)

    def test_commands_queued_during_a_tick_wait_for_the_next(self):
        kernel = make_kernel()
        kernel.queue_command(SetSignalCommand(SignalName.RAMP_ENTRY, SignalState.RED))
        kernel.queue_command(ToggleSignalCommand(SignalName.RAMP_ENTRY))
        self.assertEqual(kernel.command_queue.pending, 2)

        drained = kernel.command_queue.drain()
        next(drained).execute(kernel)
        kernel.queue_command(PauseCommand())
        for cmd in drained:
            cmd.execute(kernel)

        self.assertEqual(kernel.signals.get(SignalName.RAMP_ENTRY), SignalState.GREEN)
        self.assertEqual(kernel.command_queue.pending, 1)
        kernel.run_tick()
        self.assertEqual(kernel.state.phase, SimulationPhase.PAUSED)
        self.assertEqual(kernel.command_queue.pending, 0)

class TestOutputs(unittest.TestCase):
    def test_snapshot_view(self):
        kernel = make_kernel(vehicle_count=50)
        kernel.run_tick()
        snapshot = kernel.get_state()

        self.assertEqual(snapshot.tick, 1)
        self.assertEqual(len(snapshot.vehicles), 50)
        self.assertEqual(snapshot.activeVehicleCount,
                         sum(1 for v in snapshot.vehicles if not v.hasExited))
        self.assertEqual(snapshot.signals[SignalName.MAIN_MERGE], SignalState.GREEN)
        self.assertIsNone(snapshot.completion)

        dumped = snapshot.model_dump(mode="json")
        self.assertEqual(set(dumped["vehicles"][0]),
                         {"id", "kind", "road", "lane", "position", "velocity", "hasExited"})

    def test_overview_covers_each_carriageway(self):
        overview = make_kernel().get_overview()
        self.assertEqual([road.roadId for road in overview.roads], ["ramp", "main-0", "main-1"])
        ramp = overview.roads[0]
        # Ramp starts at a standstill
        self.assertEqual(ramp.congestion, 200.0)

if __name__ == '__main__':
    unittest.main()
