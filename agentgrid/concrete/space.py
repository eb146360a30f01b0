"""
NumPy-based implementation of the single-occupancy grid for agentgrid.

This module provides the concrete spatial index used by agentgrid models. It
defines the GridSingle class, which stores agent ids in a dense NumPy array
(one id per cell, ``0`` for an empty cell) together with a mapping from ids
to positions, so that both "who is here" and "where is this agent" are
answered in constant time.

Classes:
    GridSingle(AbstractGrid):
        A single-occupancy N-dimensional grid with per-axis periodic or
        bounded boundaries and a chebyshev, euclidean or manhattan metric.

Usage:
    The GridSingle class is normally created by the Model, but it can be used
    on its own:

    import numpy as np
    from agentgrid.concrete.space import GridSingle

    grid = GridSingle([12, 12], periodic=False, metric="chebyshev",
                      random=np.random.default_rng(42))
    grid.place(1, (0, 0))
    grid.place(2, (1, 1))
    grid.neighbors((1, 1))  # [(0, 0)]

For more detailed information on the GridSingle class and its methods,
refer to the class docstring.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import product
import math

import numpy as np
import polars as pl

from agentgrid.abstract.space import AbstractGrid
from agentgrid.exceptions import (
    InvalidConfigError,
    NotFoundError,
    OccupiedCellError,
    OutOfBoundsError,
)
from agentgrid.types_ import Metric, Periodicity, Position, PositionLike
from agentgrid.utils import copydoc

_METRICS = ("chebyshev", "euclidean", "manhattan")
EMPTY = 0


@copydoc(AbstractGrid)
class GridSingle(AbstractGrid):
    """NumPy-based implementation of AbstractGrid."""

    _cells: np.ndarray  # agent id per cell, EMPTY if free
    _positions: dict[int, Position]
    _offsets_cache: dict[int, np.ndarray]

    def __init__(
        self,
        dimensions: Sequence[int],
        periodic: Periodicity = False,
        metric: Metric = "chebyshev",
        random: np.random.Generator | None = None,
    ) -> None:
        """Create a new GridSingle.

        Parameters
        ----------
        dimensions : Sequence[int]
            The extent of each axis. Every extent must be positive.
        periodic : bool | Sequence[bool], optional
            Whether the axes wrap around, either for all axes or one flag per
            axis, by default False
        metric : Literal["chebyshev", "euclidean", "manhattan"], optional
            The metric used by neighbor queries, by default "chebyshev"
        random : np.random.Generator | None, optional
            The generator used to sample free cells. Models pass their own
            generator; a fresh unseeded one is created otherwise.

        Raises
        ------
        InvalidConfigError
            If the dimensions, periodicity or metric are invalid.
        """
        dimensions = tuple(int(d) for d in dimensions)
        if not dimensions:
            raise InvalidConfigError("The grid must have at least one dimension")
        if any(d <= 0 for d in dimensions):
            raise InvalidConfigError(
                f"Every grid extent must be positive, got {dimensions}"
            )
        if isinstance(periodic, (bool, np.bool_)):
            periodic = (bool(periodic),) * len(dimensions)
        else:
            periodic = tuple(bool(p) for p in periodic)
            if len(periodic) != len(dimensions):
                raise InvalidConfigError(
                    f"Expected {len(dimensions)} periodic flags, got {len(periodic)}"
                )
        if metric not in _METRICS:
            raise InvalidConfigError(
                f"Unknown metric {metric!r}, expected one of {_METRICS}"
            )

        self._dimensions = dimensions
        self._periodic = periodic
        self._metric = metric
        self._pos_col_names = [f"dim_{k}" for k in range(len(dimensions))]
        self._cells = np.full(dimensions, EMPTY, dtype=np.int64)
        self._positions = {}
        self._offsets_cache = {}
        self.random = random if random is not None else np.random.default_rng()

    def occupant_at(self, pos: PositionLike) -> int | None:
        agent_id = int(self._cells[self.normalize(pos)])
        return None if agent_id == EMPTY else agent_id

    def is_empty(self, pos: PositionLike) -> bool:
        """Return True if no agent occupies pos."""
        return self.occupant_at(pos) is None

    def position_of(self, agent_id: int) -> Position:
        """Return the position of a placed agent.

        Raises
        ------
        NotFoundError
            If the agent is not placed in the grid.
        """
        try:
            return self._positions[agent_id]
        except KeyError:
            raise NotFoundError(agent_id, "the grid") from None

    def place(self, agent_id: int, pos: PositionLike) -> Position:
        if agent_id <= EMPTY:
            raise ValueError(f"Agent ids must be positive, got {agent_id}")
        if agent_id in self._positions:
            raise ValueError(f"Agent {agent_id} is already placed in the grid")
        pos = self.normalize(pos)
        occupant = int(self._cells[pos])
        if occupant != EMPTY:
            raise OccupiedCellError(pos, occupant)
        self._cells[pos] = agent_id
        self._positions[agent_id] = pos
        return pos

    def remove(self, agent_id: int) -> Position:
        pos = self.position_of(agent_id)
        self._cells[pos] = EMPTY
        del self._positions[agent_id]
        return pos

    def move(self, agent_id: int, new_pos: PositionLike) -> Position:
        old_pos = self.position_of(agent_id)
        new_pos = self.normalize(new_pos)
        if new_pos == old_pos:
            return new_pos
        occupant = int(self._cells[new_pos])
        if occupant != EMPTY:
            raise OccupiedCellError(new_pos, occupant)
        self._cells[old_pos] = EMPTY
        self._cells[new_pos] = agent_id
        self._positions[agent_id] = new_pos
        return new_pos

    def neighbors(self, pos: PositionLike, radius: int = 1) -> list[Position]:
        return [
            p for p in self.nearby_positions(pos, radius) if self._cells[p] != EMPTY
        ]

    def nearby_ids(self, pos: PositionLike, radius: int = 1) -> list[int]:
        """Return the ids of the agents within radius of pos, excluding pos.

        Parameters
        ----------
        pos : PositionLike
            The center position.
        radius : int, optional
            The neighborhood radius under the grid metric, by default 1

        Returns
        -------
        list[int]
        """
        return [
            int(self._cells[p])
            for p in self.nearby_positions(pos, radius)
            if self._cells[p] != EMPTY
        ]

    def nearby_positions(self, pos: PositionLike, radius: int = 1) -> list[Position]:
        center = np.asarray(self.normalize(pos), dtype=np.int64)
        if radius < 0:
            raise ValueError("radius must be >= 0")
        coords = center + self._get_offsets(int(radius))
        dims = np.asarray(self._dimensions, dtype=np.int64)
        periodic = np.asarray(self._periodic)

        # Wrap periodic axes, drop out-of-bounds rows on bounded axes
        coords = np.where(periodic, coords % dims, coords)
        in_bounds = ((coords >= 0) & (coords < dims)).all(axis=1)
        coords = coords[in_bounds]

        center_pos = tuple(int(c) for c in center)
        seen = {center_pos}
        result = []
        for row in coords.tolist():
            p = tuple(row)
            # Small periodic grids map several offsets onto the same cell
            if p in seen:
                continue
            seen.add(p)
            result.append(p)
        return result

    def random_free_cell(self) -> Position | None:
        free = np.flatnonzero(self._cells.ravel() == EMPTY)
        if free.size == 0:
            return None
        cell = free[self.random.integers(free.size)]
        return tuple(int(c) for c in np.unravel_index(cell, self._dimensions))

    def normalize(self, pos: PositionLike) -> Position:
        if isinstance(pos, (int, np.integer)):
            pos = (pos,)
        pos = tuple(int(c) for c in pos)
        if len(pos) != len(self._dimensions):
            raise InvalidConfigError(
                f"Position {pos} does not match the grid dimensionality {len(self._dimensions)}"
            )
        normalized = []
        for c, dim, wraps in zip(pos, self._dimensions, self._periodic):
            if wraps:
                c %= dim
            elif c < 0 or c >= dim:
                raise OutOfBoundsError(
                    f"Position {pos} is outside the grid {self._dimensions}"
                )
            normalized.append(c)
        return tuple(normalized)

    def out_of_bounds(self, pos: PositionLike) -> bool:
        """Return True if pos lies outside a non-periodic axis of the grid."""
        if isinstance(pos, (int, np.integer)):
            pos = (pos,)
        return any(
            not wraps and (c < 0 or c >= dim)
            for c, dim, wraps in zip(pos, self._dimensions, self._periodic)
        )

    def distance(self, pos0: PositionLike, pos1: PositionLike) -> float:
        delta = np.abs(
            np.asarray(self.normalize(pos1), dtype=np.int64)
            - np.asarray(self.normalize(pos0), dtype=np.int64)
        )
        dims = np.asarray(self._dimensions, dtype=np.int64)
        # Minimum image along periodic axes
        delta = np.where(self._periodic, np.minimum(delta, dims - delta), delta)
        if self._metric == "chebyshev":
            return float(delta.max())
        if self._metric == "manhattan":
            return float(delta.sum())
        return math.sqrt(float((delta**2).sum()))

    def _get_offsets(self, radius: int) -> np.ndarray:
        """Return the cached (n, ndim) offsets of a neighborhood of the given radius."""
        cached = self._offsets_cache.get(radius)
        if cached is not None:
            return cached
        ranges = [range(-radius, radius + 1) for _ in self._dimensions]
        if self._metric == "chebyshev":
            directions = [d for d in product(*ranges) if any(d)]
        elif self._metric == "manhattan":
            directions = [
                d for d in product(*ranges) if any(d) and sum(map(abs, d)) <= radius
            ]
        else:
            directions = [
                d
                for d in product(*ranges)
                if any(d) and sum(x * x for x in d) <= radius * radius
            ]
        offsets = np.array(directions, dtype=np.int64).reshape(
            -1, len(self._dimensions)
        )
        self._offsets_cache[radius] = offsets
        return offsets

    @property
    def agents(self) -> pl.DataFrame:
        ids = list(self._positions)
        coords = np.array(list(self._positions.values()), dtype=np.int64).reshape(
            -1, len(self._dimensions)
        )
        data = {"agent_id": pl.Series("agent_id", ids, dtype=pl.Int64)}
        for i, col in enumerate(self._pos_col_names):
            data[col] = pl.Series(col, coords[:, i], dtype=pl.Int64)
        return pl.DataFrame(data)

    @property
    def free_cell_count(self) -> int:
        """The number of empty cells."""
        return int(self._cells.size) - len(self._positions)

    @property
    def dimensions(self) -> tuple[int, ...]:
        return self._dimensions

    @property
    def periodic(self) -> tuple[bool, ...]:
        return self._periodic

    @property
    def metric(self) -> Metric:
        return self._metric

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self._positions

    def __len__(self) -> int:
        return len(self._positions)
