import unittest
from rampmerge.domain.models import Vehicle, VehicleKind, Road, SignalName, SignalState
from rampmerge.domain.graph import build_ramp_network
from rampmerge.systems.perception import find_leader, find_signal
from rampmerge.systems.signal_system import SignalController

def car(id, road, position, lane=0, exited=False):
    v = Vehicle.create(id, VehicleKind.CAR, road, lane=lane, position=position)
    v.has_exited = exited
    return v

class TestFindLeader(unittest.TestCase):
    def test_nearest_vehicle_ahead_in_same_lane(self):
        me = car(1, Road.MAIN, 0.0, lane=0)
        vehicles = [
            me,
            car(2, Road.MAIN, 100.0, lane=0),
            car(3, Road.MAIN, 50.0, lane=0),
            car(4, Road.MAIN, 30.0, lane=1),
            car(5, Road.RAMP, 10.0),
        ]
        self.assertEqual(find_leader(me, vehicles).id, 3)

    def test_exited_and_level_vehicles_are_skipped(self):
        me = car(1, Road.MAIN, 40.0, lane=1)
        vehicles = [
            me,
            car(2, Road.MAIN, 60.0, lane=1, exited=True),
            car(3, Road.MAIN, 40.0, lane=1),
            car(4, Road.MAIN, 10.0, lane=1),
        ]
        self.assertIsNone(find_leader(me, vehicles))

    def test_ramp_vehicles_follow_ramp_only(self):
        me = car(1, Road.RAMP, 100.0)
        vehicles = [me, car(2, Road.MAIN, 105.0, lane=0), car(3, Road.RAMP, 125.0)]
        self.assertEqual(find_leader(me, vehicles).id, 3)

class TestFindSignal(unittest.TestCase):
    def setUp(self):
        self.network = build_ramp_network()
        self.signals = SignalController()

    def binding(self, road, position):
        return find_signal(car(1, road, position), self.signals, self.network)

    def test_ramp_bands(self):
        entry = self.binding(Road.RAMP, 149.9)
        self.assertEqual(entry.name, SignalName.RAMP_ENTRY)
        self.assertEqual(entry.stop_line, 140.0)

        middle = self.binding(Road.RAMP, 150.0)
        self.assertEqual(middle.name, SignalName.RAMP_MIDDLE)
        self.assertEqual(middle.stop_line, 290.0)
        self.assertEqual(self.binding(Road.RAMP, 299.9).name, SignalName.RAMP_MIDDLE)

        self.assertIsNone(self.binding(Road.RAMP, 300.0))
        self.assertIsNone(self.binding(Road.RAMP, 800.0))

    def test_main_merge_band(self):
        merge = self.binding(Road.MAIN, 0.0)
        self.assertEqual(merge.name, SignalName.MAIN_MERGE)
        self.assertEqual(merge.stop_line, 450.0)
        self.assertEqual(self.binding(Road.MAIN, 599.9).name, SignalName.MAIN_MERGE)
        self.assertIsNone(self.binding(Road.MAIN, 600.0))

    def test_binding_reports_current_state(self):
        self.assertFalse(self.binding(Road.RAMP, 10.0).is_red)
        self.signals.set(SignalName.RAMP_ENTRY, SignalState.RED)
        self.assertTrue(self.binding(Road.RAMP, 10.0).is_red)
        self.assertFalse(self.binding(Road.RAMP, 200.0).is_red)

class TestRoadNetwork(unittest.TestCase):
    def test_layout_description(self):
        layout = build_ramp_network().describe()
        signals = {s["signal"]: s["stopLine"] for s in layout["segments"] if s["signal"]}
        self.assertEqual(signals, {"rampEntry": 140.0, "rampMiddle": 290.0, "mainMerge": 450.0})

        types = {node["type"] for node in layout["nodes"]}
        self.assertIn("merge", types)
        self.assertIn("exit", types)
        offsets = {(node["road"], node["offset"]) for node in layout["nodes"]}
        self.assertIn(("main", 500.0), offsets)
        self.assertIn(("ramp", 150.0), offsets)

    def test_ramp_feeds_merge_node(self):
        network = build_ramp_network()
        self.assertTrue(network.graph.has_edge(("ramp", 500.0), ("main", 500.0)))
        self.assertEqual(network.get_node_offset(("main", 1300.0)), 1300.0)

if __name__ == '__main__':
    unittest.main()
