"""
Abstract base classes for spatial components in agentgrid.

This module defines the interface every discrete space in agentgrid follows.
A space only stores links between positions and agent ids; agent data lives
in the agent registry, and the model keeps both in lock-step.

Classes:
    AbstractGrid(ABC):
        Interface for single-occupancy N-dimensional grids. It declares the
        placement, removal and movement primitives, neighbor queries under a
        distance metric, and random sampling of free cells.

Usage:
    These classes should not be instantiated directly. Concrete
    implementations subclass them:

    from agentgrid.abstract.space import AbstractGrid

    class MyGrid(AbstractGrid):
        def place(self, agent_id, pos):
            # Record the link between agent_id and pos
            ...

For more detailed information on each method, refer to its docstring.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import polars as pl

from agentgrid.types_ import Metric, Position, PositionLike


class AbstractGrid(ABC):
    """Interface for single-occupancy grids.

    Every cell holds at most one agent id. The dimensions, the periodicity of
    each axis and the metric are fixed at construction.
    """

    @abstractmethod
    def occupant_at(self, pos: PositionLike) -> int | None:
        """Return the id of the agent at a position.

        Parameters
        ----------
        pos : PositionLike
            The position to inspect.

        Returns
        -------
        int | None
            The occupant id, or None if the cell is empty.
        """
        ...

    @abstractmethod
    def place(self, agent_id: int, pos: PositionLike) -> Position:
        """Place an agent at a position.

        Parameters
        ----------
        agent_id : int
            The id of the agent to place.
        pos : PositionLike
            The target position.

        Returns
        -------
        Position
            The normalized position the agent was placed at.

        Raises
        ------
        OccupiedCellError
            If the cell already holds an agent.
        """
        ...

    @abstractmethod
    def remove(self, agent_id: int) -> Position:
        """Remove an agent from the grid.

        Parameters
        ----------
        agent_id : int
            The id of the agent to remove.

        Returns
        -------
        Position
            The position the agent was freed from.

        Raises
        ------
        NotFoundError
            If the agent is not placed in the grid.
        """
        ...

    @abstractmethod
    def move(self, agent_id: int, new_pos: PositionLike) -> Position:
        """Move a placed agent to a new position.

        The move is atomic: if it fails, no cell changes.

        Parameters
        ----------
        agent_id : int
            The id of the agent to move.
        new_pos : PositionLike
            The destination.

        Returns
        -------
        Position
            The normalized destination.

        Raises
        ------
        NotFoundError
            If the agent is not placed in the grid.
        OccupiedCellError
            If the destination holds a different agent.
        """
        ...

    @abstractmethod
    def neighbors(self, pos: PositionLike, radius: int = 1) -> list[Position]:
        """Return the occupied positions within radius of pos, excluding pos.

        Parameters
        ----------
        pos : PositionLike
            The center position.
        radius : int, optional
            The neighborhood radius under the grid metric, by default 1

        Returns
        -------
        list[Position]
        """
        ...

    @abstractmethod
    def nearby_positions(self, pos: PositionLike, radius: int = 1) -> list[Position]:
        """Return every position within radius of pos, excluding pos.

        Parameters
        ----------
        pos : PositionLike
            The center position.
        radius : int, optional
            The neighborhood radius under the grid metric, by default 1

        Returns
        -------
        list[Position]
        """
        ...

    @abstractmethod
    def random_free_cell(self) -> Position | None:
        """Sample a free cell uniformly at random.

        Returns
        -------
        Position | None
            A free position, or None if the grid is full.
        """
        ...

    @abstractmethod
    def normalize(self, pos: PositionLike) -> Position:
        """Validate a position and wrap its periodic axes.

        Parameters
        ----------
        pos : PositionLike
            The position to normalize.

        Returns
        -------
        Position

        Raises
        ------
        InvalidConfigError
            If the position does not have one coordinate per dimension.
        OutOfBoundsError
            If a coordinate lies outside a non-periodic axis.
        """
        ...

    @abstractmethod
    def distance(self, pos0: PositionLike, pos1: PositionLike) -> float:
        """Return the distance between two positions under the grid metric.

        Parameters
        ----------
        pos0 : PositionLike
        pos1 : PositionLike

        Returns
        -------
        float
        """
        ...

    @property
    @abstractmethod
    def agents(self) -> pl.DataFrame:
        """A DataFrame with the id and coordinates of every placed agent."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> Sequence[int]:
        """The extent of each axis."""
        ...

    @property
    @abstractmethod
    def periodic(self) -> tuple[bool, ...]:
        """Whether each axis wraps around."""
        ...

    @property
    @abstractmethod
    def metric(self) -> Metric:
        """The distance metric used by neighbor queries."""
        ...

    def __len__(self) -> int:
        return len(self.agents)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}\n{str(self.agents)}"

    def __str__(self) -> str:
        return f"{self.__class__.__name__}\n{str(self.agents)}"
