import math
from typing import Optional
from rampmerge.domain.models import Vehicle, SignalBinding
from rampmerge.domain import config

class VehicleSystem:
    """Longitudinal dynamics: signal braking, then friction-aware car following."""

    def advance(self, vehicle: Vehicle, dt: float,
                leader: Optional[Vehicle] = None, signal: Optional[SignalBinding] = None):
        was_stopped = vehicle.velocity < config.STOPPED_SPEED

        vehicle.acceleration = self.acceleration(vehicle, leader, signal)

        if was_stopped:
            vehicle.stopped_ticks += 1
        else:
            vehicle.stopped_ticks = 0

        velocity = max(0.0, vehicle.velocity + vehicle.acceleration * dt)
        vehicle.velocity = min(velocity, vehicle.effective_max_velocity)
        assert vehicle.velocity >= 0.0, f"vehicle {vehicle.id} reversing: {vehicle.velocity}"

        vehicle.position += vehicle.velocity * dt

    def acceleration(self, vehicle: Vehicle, leader: Optional[Vehicle] = None,
                     signal: Optional[SignalBinding] = None) -> float:
        braking = self.signal_braking(vehicle, signal)
        if braking is not None:
            return braking

        accel = self.free_road_term(vehicle) + self.interaction_term(vehicle, leader)
        if accel < 0:
            accel -= vehicle.rolling_friction * config.BRAKE_FRICTION_FACTOR
        return accel

    def signal_braking(self, vehicle: Vehicle, signal: Optional[SignalBinding]) -> Optional[float]:
        if signal is None or not signal.is_red:
            return None
        dist_to_line = signal.stop_line - vehicle.position
        if not 0 <= dist_to_line < config.SIGNAL_BRAKE_ZONE:
            return None
        if dist_to_line < config.SIGNAL_HARD_BRAKE_ZONE:
            return -vehicle.comfort_deceleration * config.SIGNAL_HARD_BRAKE_FACTOR
        return -vehicle.comfort_deceleration * config.SIGNAL_BRAKE_FACTOR

    def free_road_term(self, vehicle: Vehicle) -> float:
        # Stiction: a vehicle at rest resists starting more than one already rolling
        if vehicle.velocity < config.STOPPED_SPEED:
            friction = vehicle.static_friction
        else:
            friction = vehicle.rolling_friction
        ratio = vehicle.velocity / vehicle.max_velocity
        return vehicle.max_acceleration * (1 - ratio ** config.FREE_ROAD_EXPONENT) - friction

    def desired_gap(self, vehicle: Vehicle, leader: Vehicle) -> float:
        closing_speed = vehicle.velocity - leader.velocity
        dynamic = (vehicle.velocity * vehicle.desired_time_headway
                   + (vehicle.velocity * closing_speed)
                   / (2 * math.sqrt(vehicle.max_acceleration * vehicle.comfort_deceleration)))
        return vehicle.min_gap + max(0.0, dynamic)

    def actual_gap(self, vehicle: Vehicle, leader: Vehicle) -> float:
        return leader.position - leader.length - vehicle.position

    def interaction_term(self, vehicle: Vehicle, leader: Optional[Vehicle]) -> float:
        if leader is None:
            return 0.0
        gap = max(self.actual_gap(vehicle, leader), config.MIN_GAP_DENOMINATOR)
        return -vehicle.max_acceleration * (self.desired_gap(vehicle, leader) / gap) ** 2
