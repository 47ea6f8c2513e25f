"""
A* pathfinding over the 8-connected tile grid.
Routes units around water, trees, buildings, construction sites and other units.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

Tile = Tuple[int, int]

# Up, right, down, left, then the diagonals
DIRECTIONS = [
    (0, -1), (1, 0), (0, 1), (-1, 0),
    (1, -1), (1, 1), (-1, 1), (-1, -1),
]


@dataclass
class PathNode:
    x: int
    y: int
    g: int
    h: int
    f: int
    parent: Optional["PathNode"] = None


class Pathfinder:
    """
    Grid A* with uniform step cost and a Manhattan heuristic.

    ``is_walkable`` is queried on every expansion, so the search always sees
    the current occupancy.
    """

    def __init__(self, map_size: int, is_walkable: Callable[[int, int], bool],
                 nearest_walkable_radius: int = 5):
        self.map_size = map_size
        self.is_walkable = is_walkable
        self.nearest_walkable_radius = nearest_walkable_radius

    def find_path(self, start_x: int, start_y: int, target_x: int, target_y: int) -> Optional[List[Tile]]:
        """Return the tiles from start to target (both included), or None when unreachable.

        A blocked target is swapped for the nearest walkable tile around it.
        """
        if not self.is_walkable(target_x, target_y):
            alternative = self.find_nearest_walkable_tile(target_x, target_y)
            if alternative is None:
                logger.debug("No walkable tile near (%d, %d)", target_x, target_y)
                return None
            logger.debug("Target (%d, %d) blocked, using (%d, %d)", target_x, target_y, *alternative)
            target_x, target_y = alternative

        start_h = self.heuristic(start_x, start_y, target_x, target_y)
        open_set: List[PathNode] = [PathNode(start_x, start_y, 0, start_h, start_h)]
        closed_set: Set[Tile] = set()

        while open_set:
            # Stable sort: equal f-costs keep insertion order
            open_set.sort(key=lambda node: node.f)
            current = open_set.pop(0)
            closed_set.add((current.x, current.y))

            if current.x == target_x and current.y == target_y:
                return self.reconstruct_path(current)

            for nx, ny in self.get_neighbors(current.x, current.y):
                if (nx, ny) in closed_set:
                    continue
                if not self.is_walkable(nx, ny):
                    continue

                g_cost = current.g + 1
                existing = next((node for node in open_set if node.x == nx and node.y == ny), None)

                if existing is None:
                    h = self.heuristic(nx, ny, target_x, target_y)
                    open_set.append(PathNode(nx, ny, g_cost, h, g_cost + h, current))
                elif g_cost < existing.g:
                    existing.g = g_cost
                    existing.f = g_cost + existing.h
                    existing.parent = current

        return None

    @staticmethod
    def heuristic(x1: int, y1: int, x2: int, y2: int) -> int:
        return abs(x1 - x2) + abs(y1 - y2)

    def get_neighbors(self, x: int, y: int) -> List[Tile]:
        neighbors = []
        for dx, dy in DIRECTIONS:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.map_size and 0 <= ny < self.map_size:
                neighbors.append((nx, ny))
        return neighbors

    def find_nearest_walkable_tile(self, target_x: int, target_y: int) -> Optional[Tile]:
        """Breadth-first search outward from the target, up to ``nearest_walkable_radius`` hops."""
        checked: Set[Tile] = set()
        queue: deque[Tuple[int, int, int]] = deque([(target_x, target_y, 0)])

        while queue:
            x, y, dist = queue.popleft()
            if (x, y) in checked:
                continue
            checked.add((x, y))

            if self.is_walkable(x, y):
                return x, y

            if dist >= self.nearest_walkable_radius:
                continue

            for nx, ny in self.get_neighbors(x, y):
                if (nx, ny) not in checked:
                    queue.append((nx, ny, dist + 1))

        return None

    @staticmethod
    def reconstruct_path(end_node: PathNode) -> List[Tile]:
        path: List[Tile] = []
        node: Optional[PathNode] = end_node
        while node is not None:
            path.append((node.x, node.y))
            node = node.parent
        path.reverse()
        return path
