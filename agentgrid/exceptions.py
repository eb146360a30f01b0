"""
Exceptions raised by agentgrid.

Every error derives from :class:`AgentGridError` and from the builtin
exception that best describes it, so callers can catch either the library
error or the usual ``ValueError``/``LookupError``/``TypeError``.

Classes:
    AgentGridError:
        Base class for all agentgrid errors.
    OccupiedCellError:
        Placement or movement onto a cell already holding another agent.
    NotFoundError:
        Operation on an agent id that is unknown, destroyed or not placed.
    GridFullError:
        No free cell is left for a random placement.
    OutOfBoundsError:
        Explicit position outside the grid along a non-periodic axis.
    InvalidConfigError:
        Invalid model, grid, scheduler or data collection configuration.
    SchemaError:
        Agent properties that do not match the model's agent schema.
"""

from __future__ import annotations


class AgentGridError(Exception):
    """Base class for all agentgrid errors."""


class OccupiedCellError(AgentGridError, ValueError):
    """Raised when placing or moving an agent onto an occupied cell."""

    def __init__(self, pos: tuple[int, ...], occupant: int) -> None:
        self.pos = pos
        self.occupant = occupant
        super().__init__(f"Cell {pos} is already occupied by agent {occupant}")


class NotFoundError(AgentGridError, LookupError):
    """Raised when an agent id is not present."""

    def __init__(self, agent_id: int, where: str = "the model") -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is not present in {where}")


class GridFullError(AgentGridError, ValueError):
    """Raised when a random free cell is required but the grid is full."""


class OutOfBoundsError(AgentGridError, ValueError):
    """Raised when a position lies outside a non-periodic axis of the grid."""


class InvalidConfigError(AgentGridError, ValueError):
    """Raised on invalid model, space, scheduler or collection configuration."""


class SchemaError(AgentGridError, TypeError):
    """Raised when agent properties do not match the agent schema."""
