import networkx as nx
from typing import Dict, Any, List, Optional, Tuple

from rampmerge.domain import config
from rampmerge.domain.models import Road, SignalName

Node = Tuple[str, float]

class RoadNetwork:
    """Road geometry as a directed graph.

    Nodes are ``(road, offset)`` points; every edge is a road segment
    ``[start, end)`` that may be governed by a signal with a stop line inside it.
    The last ramp segment feeds the main road's merge node.
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self._segments: Dict[str, List[Dict[str, Any]]] = {}

    def add_point(self, road: Road, offset: float, kind: str = "point"):
        self.graph.add_node((road.value, offset), road=road.value, offset=offset, type=kind)

    def add_segment(self, road: Road, start: float, end: float,
                    signal: Optional[SignalName] = None, stop_line: Optional[float] = None):
        u, v = (road.value, start), (road.value, end)
        for node, offset in ((u, start), (v, end)):
            if node not in self.graph:
                self.add_point(road, offset)
        self.graph.add_edge(u, v, road=road.value, start=start, end=end,
                            signal=signal, stop_line=stop_line)
        self._segments.pop(road.value, None)

    def connect(self, u: Node, v: Node, **attrs):
        self.graph.add_edge(u, v, **attrs)

    def segments(self, road: Road) -> List[Dict[str, Any]]:
        cached = self._segments.get(road.value)
        if cached is None:
            cached = sorted(
                (data for _, _, data in self.graph.edges(data=True)
                 if data.get("road") == road.value),
                key=lambda data: data["start"],
            )
            self._segments[road.value] = cached
        return cached

    def segment_at(self, road: Road, position: float) -> Optional[Dict[str, Any]]:
        # The first segment of a road also covers anything before its start
        for data in self.segments(road):
            if position < data["end"]:
                return data
        return None

    def signal_at(self, road: Road, position: float) -> Optional[Tuple[SignalName, float]]:
        segment = self.segment_at(road, position)
        if segment is None or segment["signal"] is None:
            return None
        return segment["signal"], segment["stop_line"]

    def get_node_offset(self, u: Node) -> float:
        return self.graph.nodes[u].get("offset", 0.0)

    def describe(self) -> Dict[str, Any]:
        return {
            "nodes": [
                {"road": data["road"], "offset": self.get_node_offset(node), "type": data["type"]}
                for node, data in self.graph.nodes(data=True)
            ],
            "segments": [
                {
                    "from": list(u),
                    "to": list(v),
                    "signal": data["signal"].value if data.get("signal") else None,
                    "stopLine": data.get("stop_line"),
                }
                for u, v, data in self.graph.edges(data=True)
            ],
        }

def build_ramp_network(main_length: float = config.MAIN_ROAD_LENGTH,
                       ramp_length: float = config.RAMP_LENGTH,
                       merge_point: float = config.MERGE_POINT,
                       exit_point: float = config.EXIT_POINT) -> RoadNetwork:
    network = RoadNetwork()

    # On-ramp: entry band, middle band, approach, merge window
    merge_start = merge_point - config.MERGE_WINDOW
    network.add_segment(Road.RAMP, 0.0, config.RAMP_ENTRY_BAND_END,
                        SignalName.RAMP_ENTRY, config.RAMP_ENTRY_STOP_LINE)
    network.add_segment(Road.RAMP, config.RAMP_ENTRY_BAND_END, config.RAMP_MIDDLE_BAND_END,
                        SignalName.RAMP_MIDDLE, config.RAMP_MIDDLE_STOP_LINE)
    network.add_segment(Road.RAMP, config.RAMP_MIDDLE_BAND_END, merge_start)
    network.add_segment(Road.RAMP, merge_start, ramp_length)

    # Main road: merge signal band, free section, exit
    merge_band_end = merge_point + config.MAIN_MERGE_BAND_OFFSET
    network.add_segment(Road.MAIN, 0.0, merge_band_end,
                        SignalName.MAIN_MERGE, merge_point - config.MAIN_MERGE_STOP_OFFSET)
    network.add_segment(Road.MAIN, merge_band_end, exit_point)
    network.add_segment(Road.MAIN, exit_point, main_length)

    network.add_point(Road.MAIN, merge_point, kind="merge")
    network.graph.nodes[(Road.MAIN.value, exit_point)]["type"] = "exit"
    network.connect((Road.RAMP.value, ramp_length), (Road.MAIN.value, merge_point),
                    road="junction", lane=config.MERGE_TARGET_LANE)
    return network
