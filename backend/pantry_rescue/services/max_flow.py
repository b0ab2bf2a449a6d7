"""
Edmonds-Karp maximum flow.

Repeated breadth-first search on the residual graph finds the shortest
augmenting path, which is saturated at its bottleneck. The number of
augmenting paths is capped: the scorer only needs to know which edges
carry positive flow, not the exact maximum.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from pantry_rescue.services.flow_network import FlowEdge, FlowNetwork, Vertex

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATHS = 100


@dataclass
class MaxFlowResult:
    """Total flow pushed and the augmenting paths used."""
    total_flow: float = 0.0
    augmenting_paths: list[list[Vertex]] = field(default_factory=list)

    @property
    def path_count(self) -> int:
        return len(self.augmenting_paths)


def find_augmenting_path(
    network: FlowNetwork,
    source: Vertex,
    sink: Vertex,
) -> Optional[list[FlowEdge]]:
    """Shortest source -> sink path with positive residual capacity, as edges."""
    parent_edge: dict[Vertex, FlowEdge] = {}
    visited = {source}
    queue = deque([source])

    while queue:
        current = queue.popleft()
        if current == sink:
            path: list[FlowEdge] = []
            node = sink
            while node != source:
                edge = parent_edge[node]
                path.append(edge)
                node = edge.tail
            path.reverse()
            return path

        for edge in network.edges_from(current):
            if edge.head in visited or edge.residual_capacity <= 0:
                continue
            visited.add(edge.head)
            parent_edge[edge.head] = edge
            queue.append(edge.head)

    return None


def edmonds_karp(
    network: FlowNetwork,
    source: Vertex,
    sink: Vertex,
    max_paths: int = DEFAULT_MAX_PATHS,
    log: Optional[logging.Logger] = None,
) -> MaxFlowResult:
    """Compute (capped) maximum flow, updating edge flows in place.

    Never raises: on an unexpected error all flows are reset and an empty
    result is returned, which callers treat as "no augmenting structure".
    """
    log = log or logger
    result = MaxFlowResult()

    try:
        while result.path_count < max_paths:
            path = find_augmenting_path(network, source, sink)
            if path is None:
                break

            bottleneck = min(edge.residual_capacity for edge in path)
            for edge in path:
                edge.flow += bottleneck
                edge.reverse.flow -= bottleneck

            result.total_flow += bottleneck
            result.augmenting_paths.append([path[0].tail] + [edge.head for edge in path])
        else:
            log.debug(f"Stopped after {max_paths} augmenting paths")

    except Exception as e:
        log.error(f"Max flow computation failed: {e}")
        network.reset_flows()
        return MaxFlowResult()

    log.debug(f"Max flow {result.total_flow:.2f} over {result.path_count} augmenting paths")
    return result
