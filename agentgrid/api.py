"""
Functional interface to agentgrid models.

Every operation is a thin function over a :class:`~agentgrid.Model`, for
callers (command line tools, renderers, notebooks) that prefer plain
functions to methods.

Functions:
    create_model, add_agent, remove_agent, step, current_time, run,
    agent_count, all_agents, agent_property
"""

from __future__ import annotations

from collections.abc import Sequence, ValuesView
from typing import Any

import polars as pl

from agentgrid.abstract.scheduler import AbstractScheduler
from agentgrid.concrete.agentregistry import Agent, AgentSchema
from agentgrid.concrete.model import Model
from agentgrid.exceptions import InvalidConfigError
from agentgrid.types_ import (
    AgentReporters,
    AgentStepFunction,
    BoundaryMode,
    Metric,
    ModelReporters,
    ModelStepFunction,
    PositionLike,
    SchedulerLike,
    SchemaLike,
    StepsOrPredicate,
)

_BOUNDARY_MODES = ("bounded", "periodic")


def _periodic_flags(
    boundary_mode: BoundaryMode | Sequence[BoundaryMode], ndim: int
) -> tuple[bool, ...]:
    modes = (boundary_mode,) * ndim if isinstance(boundary_mode, str) else tuple(boundary_mode)
    for mode in modes:
        if mode not in _BOUNDARY_MODES:
            raise InvalidConfigError(
                f"Unknown boundary mode {mode!r}, expected one of {_BOUNDARY_MODES}"
            )
    return tuple(mode == "periodic" for mode in modes)


def create_model(
    agent_schema: AgentSchema | SchemaLike,
    grid_extent: Sequence[int],
    boundary_mode: BoundaryMode | Sequence[BoundaryMode] = "bounded",
    metric: Metric = "chebyshev",
    properties: dict[str, Any] | None = None,
    scheduler_policy: SchedulerLike | AbstractScheduler = None,
    seed: int | Sequence[int] | None = None,
    agent_step: AgentStepFunction | None = None,
    model_step: ModelStepFunction | None = None,
) -> Model:
    """Create a model on a single-occupancy grid.

    Parameters
    ----------
    agent_schema : AgentSchema | Mapping[str, type | pl.DataType]
        The names and types of the agent properties.
    grid_extent : Sequence[int]
        The extent of each grid axis.
    boundary_mode : "bounded" | "periodic" | Sequence of those, optional
        The boundary behavior of every axis, or of each axis, by default "bounded"
    metric : "chebyshev" | "euclidean" | "manhattan", optional
        The neighbor metric, by default "chebyshev"
    properties : dict[str, Any] | None, optional
        Global model parameters.
    scheduler_policy : AbstractScheduler | str | Callable | None, optional
        The activation-order policy, by default ByID
    seed : int | Sequence[int] | None, optional
        The seed of the model generator.
    agent_step : Callable[[Agent, Model], Any] | None, optional
        The per-agent update function.
    model_step : Callable[[Model], Any] | None, optional
        The per-step model function.

    Returns
    -------
    Model
    """
    return Model(
        agent_schema,
        dimensions=grid_extent,
        periodic=_periodic_flags(boundary_mode, len(grid_extent)),
        metric=metric,
        properties=properties,
        agent_step=agent_step,
        model_step=model_step,
        scheduler=scheduler_policy,
        seed=seed,
    )


def add_agent(model: Model, position: PositionLike | None = None, **properties: Any) -> int:
    """Add an agent and return its id.

    Without a position the agent lands on a uniformly sampled free cell and
    GridFullError is raised if there is none.
    """
    return model.add_agent(position, **properties).unique_id


def remove_agent(model: Model, agent_id: int) -> None:
    """Remove an agent from the model."""
    model.remove_agent(agent_id)


def step(model: Model, n_or_predicate: StepsOrPredicate = 1) -> None:
    """Advance a model by a number of steps or until a predicate holds."""
    model.step(n_or_predicate)


def current_time(model: Model) -> int:
    """Return the number of completed steps of a model."""
    return model.time


def run(
    model: Model,
    n_or_predicate: StepsOrPredicate,
    agent_data: AgentReporters | None = None,
    model_data: ModelReporters | None = None,
    final: bool = False,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Advance a model while collecting data; see :meth:`Model.run`."""
    return model.run(n_or_predicate, agent_data=agent_data, model_data=model_data, final=final)


def agent_count(model: Model) -> int:
    """Return the number of live agents."""
    return model.agent_count


def all_agents(model: Model) -> ValuesView[Agent]:
    """Return a lazy, restartable view over the live agents in insertion order."""
    return model.all_agents()


def agent_property(model: Model, agent_id: int, name: str) -> Any:
    """Return the value of a property of an agent."""
    return model.agent_property(agent_id, name)
