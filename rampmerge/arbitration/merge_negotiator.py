import logging
from typing import Iterable, Tuple
from rampmerge.domain.models import Vehicle, Road, SignalName
from rampmerge.systems.signal_system import SignalController
from rampmerge.domain import config

log = logging.getLogger(__name__)

class MergeNegotiator:
    """Gap acceptance for ramp vehicles entering the main road's merge lane."""

    def __init__(self, signals: SignalController, merge_point: float = config.MERGE_POINT,
                 target_lane: int = config.MERGE_TARGET_LANE):
        self.signals = signals
        self.merge_point = merge_point
        self.target_lane = target_lane

    def in_merge_window(self, vehicle: Vehicle) -> bool:
        return vehicle.road == Road.RAMP and vehicle.position >= self.merge_point - config.MERGE_WINDOW

    def blocked_by_signal(self, vehicle: Vehicle) -> bool:
        # Both ramp signals must be cleared before merging
        if self.signals.is_red(SignalName.RAMP_ENTRY) and vehicle.position < config.RAMP_ENTRY_BAND_END:
            return True
        if self.signals.is_red(SignalName.RAMP_MIDDLE) and vehicle.position < config.RAMP_MIDDLE_BAND_END:
            return True
        return False

    def required_gap(self, vehicle: Vehicle) -> float:
        if vehicle.stopped_ticks > config.MERGE_STUCK_TICKS:
            return config.MERGE_STIFF_GAP
        return config.MERGE_MIN_GAP

    def measure_gaps(self, vehicle: Vehicle, vehicles: Iterable[Vehicle]) -> Tuple[float, float]:
        """Front and back gaps the vehicle would have in the target lane."""
        leader = follower = None
        leader_dist = follower_dist = float("inf")
        for other in vehicles:
            if other.id == vehicle.id or other.has_exited:
                continue
            if other.road != Road.MAIN or other.lane != self.target_lane:
                continue
            if other.position > vehicle.position:
                dist = other.position - vehicle.position
                if dist < leader_dist:
                    leader_dist, leader = dist, other
            else:
                dist = vehicle.position - other.position
                if dist < follower_dist:
                    follower_dist, follower = dist, other

        gap_front = leader_dist - leader.length if leader else config.OPEN_GAP
        gap_back = follower_dist - vehicle.length if follower else config.OPEN_GAP
        return gap_front, gap_back

    def attempt_merge(self, vehicle: Vehicle, vehicles: Iterable[Vehicle]) -> bool:
        if not self.in_merge_window(vehicle) or self.blocked_by_signal(vehicle):
            return False

        gap_front, gap_back = self.measure_gaps(vehicle, vehicles)
        min_gap = self.required_gap(vehicle)
        if gap_front > min_gap and gap_back > min_gap:
            vehicle.road = Road.MAIN
            vehicle.lane = self.target_lane
            vehicle.has_merged = True
            log.debug("Vehicle %s merged at %.1f (front=%.1f back=%.1f min=%.0f)",
                      vehicle.id, vehicle.position, gap_front, gap_back, min_gap)
            return True
        return False
