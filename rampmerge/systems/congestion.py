from typing import Iterable, List
from rampmerge.domain.models import Vehicle, Road, RoadOverview, SimulationOverview
from rampmerge.domain import config

class CongestionMonitor:
    def measure(self, vehicles: Iterable[Vehicle]) -> float:
        """Weighted share of stopped (x2) and slow (x1) active vehicles, in percent.

        Not clamped: a fully stopped road reads 200.
        """
        active = 0
        stopped = 0
        slow = 0
        for v in vehicles:
            if v.has_exited:
                continue
            active += 1
            if v.velocity < config.STOPPED_SPEED:
                stopped += 1
            elif v.velocity < v.max_velocity * config.SLOW_SPEED_FRACTION:
                slow += 1
        if active == 0:
            return 0.0
        return (stopped * 2 + slow) / active * 100

    def overview(self, vehicles: List[Vehicle]) -> SimulationOverview:
        groups = {"ramp": [], "main-0": [], "main-1": []}
        for v in vehicles:
            if v.has_exited:
                continue
            road_id = "ramp" if v.road == Road.RAMP else f"main-{v.lane}"
            groups.setdefault(road_id, []).append(v)

        roads = []
        for road_id, members in groups.items():
            congestion = self.measure(members)
            roads.append(RoadOverview(
                roadId=road_id,
                vehicles=len(members),
                congestion=round(congestion, 2),
                flow=self.flow_label(congestion),
            ))
        return SimulationOverview(roads=roads, congestion=round(self.measure(vehicles), 2))

    @staticmethod
    def flow_label(congestion: float) -> str:
        if congestion >= config.CONGESTED_LEVEL:
            return "congested"
        if congestion >= config.MODERATE_LEVEL:
            return "moderate"
        return "optimal"
