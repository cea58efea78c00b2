"""Read-only queries over the vehicle set: leaders and signal bindings."""

from typing import Iterable, Optional
from rampmerge.domain.models import Vehicle, Road, SignalBinding
from rampmerge.domain.graph import RoadNetwork
from rampmerge.systems.signal_system import SignalController

def find_leader(vehicle: Vehicle, vehicles: Iterable[Vehicle]) -> Optional[Vehicle]:
    """Nearest active vehicle strictly ahead on the same road.

    Main-road vehicles only follow vehicles in their own lane; the ramp is a
    single effective lane so lanes are ignored there.
    """
    leader = None
    min_dist = float("inf")
    for other in vehicles:
        if other.id == vehicle.id or other.has_exited or other.road != vehicle.road:
            continue
        if vehicle.road == Road.MAIN and other.lane != vehicle.lane:
            continue
        dist = other.position - vehicle.position
        if 0 < dist < min_dist:
            min_dist = dist
            leader = other
    return leader

def find_signal(vehicle: Vehicle, signals: SignalController,
                network: RoadNetwork) -> Optional[SignalBinding]:
    """Positional signal binding for a vehicle, whatever the signal's state."""
    bound = network.signal_at(vehicle.road, vehicle.position)
    if bound is None:
        return None
    name, stop_line = bound
    return SignalBinding(name=name, stop_line=stop_line, state=signals.get(name))
