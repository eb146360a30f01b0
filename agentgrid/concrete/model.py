"""
Concrete implementation of the model class for agentgrid.

This module provides the Model class, the simulation engine of agentgrid. A
Model owns a single-occupancy grid, the agent registry, a property
dictionary of global parameters, a seeded NumPy generator, the scheduler,
and the discrete time counter. It exposes the primitives that per-agent
update functions use (adding, removing and moving agents, neighbor queries)
and the single-step, multi-step and condition-driven run loops.

Classes:
    Model:
        The simulation engine. Each step asks the scheduler for an activation
        order once, then calls the agent step function for every id that is
        still alive, in order, so that later agents see the moves of earlier
        ones. An optional model step runs after (or before) the agents.

Usage:
    from agentgrid import Model

    def agent_step(agent, model):
        same = sum(
            1 for other in model.nearby_agents(agent)
            if other.group == agent.group
        )
        agent.mood = same >= model.min_to_be_happy
        if not agent.mood:
            model.move_agent_single(agent)

    model = Model(
        {"mood": bool, "group": str},
        dimensions=(20, 20),
        properties={"min_to_be_happy": 3},
        agent_step=agent_step,
        scheduler="randomly",
        seed=42,
    )
    for i in range(320):
        model.add_agent(mood=False, group="red" if i < 160 else "green")
    model.step(10)

For more detailed information on the Model class and its methods, refer to
the class docstring.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence, ValuesView
import threading
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import polars as pl

from agentgrid.abstract.scheduler import AbstractScheduler
from agentgrid.concrete.agentregistry import Agent, AgentRegistry, AgentSchema
from agentgrid.concrete.scheduler import get_scheduler
from agentgrid.concrete.space import GridSingle
from agentgrid.exceptions import GridFullError, OccupiedCellError
from agentgrid.types_ import (
    AgentReporters,
    AgentStepFunction,
    CollectWhen,
    Metric,
    ModelReporters,
    ModelStepFunction,
    Periodicity,
    Position,
    PositionLike,
    SchedulerLike,
    SchemaLike,
    StepsOrPredicate,
)

if TYPE_CHECKING:
    from agentgrid.concrete.datacollector import DataCollector


class Model:
    """Discrete-time engine for agents living on a single-occupancy grid.

    The time counter starts at 0 and grows by one for every completed step.
    Configuration (grid, metric, scheduler, step functions) is fixed at
    construction; build a new Model to change it.
    """

    random: np.random.Generator
    _seed: int | Sequence[int]
    _agents: AgentRegistry
    _space: GridSingle
    _scheduler: AbstractScheduler
    _properties: dict[str, Any]
    _time: int
    _state: Literal["idle", "stepping"]

    def __init__(
        self,
        schema: AgentSchema | SchemaLike,
        dimensions: Sequence[int],
        periodic: Periodicity = False,
        metric: Metric = "chebyshev",
        properties: dict[str, Any] | None = None,
        agent_step: AgentStepFunction | None = None,
        model_step: ModelStepFunction | None = None,
        scheduler: SchedulerLike | AbstractScheduler = None,
        seed: int | Sequence[int] | None = None,
        agents_first: bool = True,
    ) -> None:
        """Create a new model.

        Parameters
        ----------
        schema : AgentSchema | Mapping[str, type | pl.DataType]
            The names and types of the agent properties.
        dimensions : Sequence[int]
            The extent of each grid axis.
        periodic : bool | Sequence[bool], optional
            Whether the grid axes wrap around, by default False
        metric : Literal["chebyshev", "euclidean", "manhattan"], optional
            The metric used by neighbor queries, by default "chebyshev"
        properties : dict[str, Any] | None, optional
            Global model parameters, also readable as attributes, by default None
        agent_step : Callable[[Agent, Model], Any] | None, optional
            The update function called once per agent per step, by default None
        model_step : Callable[[Model], Any] | None, optional
            A function called once per step, after the agents unless
            agents_first is False, by default None
        scheduler : AbstractScheduler | str | Callable | None, optional
            The activation-order policy, by default ByID
        seed : int | Sequence[int] | None, optional
            The seed for the model's generator
        agents_first : bool, optional
            Whether the agents are activated before the model step, by default True
        """
        self.random = None
        self.reset_randomizer(seed)
        self._agents = AgentRegistry(schema)
        self._space = GridSingle(dimensions, periodic, metric, random=self.random)
        self._scheduler = get_scheduler(scheduler)
        self._properties = dict(properties or {})
        self._agent_step = agent_step
        self._model_step = model_step
        self._agents_first = agents_first
        self._time = 0
        self._state = "idle"
        self._step_lock = threading.Lock()

    def reset_randomizer(self, seed: int | Sequence[int] | None) -> None:
        """Reset the model random number generator.

        Parameters
        ----------
        seed : int | Sequence[int] | None
            A new seed for the RNG; if None, a fresh entropy seed is drawn
        """
        if seed is None:
            seed = np.random.SeedSequence().entropy
        assert seed is not None
        self._seed = seed
        self.random = np.random.default_rng(seed=self._seed)
        if hasattr(self, "_space"):
            self._space.random = self.random

    ###----- Agents -----###

    def add_agent(self, pos: PositionLike | None = None, **properties: Any) -> Agent:
        """Create an agent and place it on the grid.

        Parameters
        ----------
        pos : PositionLike | None, optional
            The position of the new agent. If None, a free cell is sampled
            uniformly at random.
        **properties : Any
            A value for every property of the schema.

        Returns
        -------
        Agent
            The new agent.

        Raises
        ------
        GridFullError
            If pos is None and the grid has no free cell.
        OccupiedCellError
            If pos already holds an agent.
        SchemaError
            If the properties do not match the schema.
        """
        if pos is None:
            pos = self._space.random_free_cell()
            if pos is None:
                raise GridFullError("No free cell left to place a new agent")
        else:
            pos = self._space.normalize(pos)
            occupant = self._space.occupant_at(pos)
            if occupant is not None:
                raise OccupiedCellError(pos, occupant)
        agent_id = self._agents.create(pos, properties)
        self._space.place(agent_id, pos)
        return self._agents[agent_id]

    def add_agent_single(self, **properties: Any) -> Agent:
        """Create an agent on a uniformly sampled free cell.

        Raises
        ------
        GridFullError
            If the grid has no free cell.
        """
        return self.add_agent(None, **properties)

    def remove_agent(self, agent: Agent | int) -> None:
        """Remove an agent from the grid and destroy its record.

        Raises
        ------
        NotFoundError
            If the agent is not alive.
        """
        agent_id = self._get_id(agent)
        self._agents.get(agent_id)
        self._space.remove(agent_id)
        self._agents.destroy(agent_id)

    def move_agent(self, agent: Agent | int, pos: PositionLike) -> Position:
        """Move an agent to pos.

        Raises
        ------
        OccupiedCellError
            If pos is held by another agent. Nothing moves in that case.
        NotFoundError
            If the agent is not alive.
        """
        agent_id = self._get_id(agent)
        self._agents.get(agent_id)
        new_pos = self._space.move(agent_id, pos)
        self._agents._set_position(agent_id, new_pos)
        return new_pos

    def move_agent_single(self, agent: Agent | int) -> Position:
        """Move an agent to a uniformly sampled free cell.

        If the grid has no free cell the agent stays where it is.

        Returns
        -------
        Position
            The position of the agent after the call.
        """
        agent_id = self._get_id(agent)
        pos = self._space.random_free_cell()
        if pos is None:
            return self._agents.get(agent_id).pos
        return self.move_agent(agent_id, pos)

    def nearby_ids(self, target: Agent | PositionLike, radius: int = 1) -> list[int]:
        """Return the ids of the agents within radius of an agent or position.

        The target itself is never included.
        """
        return self._space.nearby_ids(self._get_pos(target), radius)

    def nearby_agents(
        self, target: Agent | PositionLike, radius: int = 1
    ) -> Iterator[Agent]:
        """Iterate over the agents within radius of an agent or position.

        The target itself is never included.
        """
        for agent_id in self.nearby_ids(target, radius):
            yield self._agents[agent_id]

    def nearby_positions(
        self, target: Agent | PositionLike, radius: int = 1
    ) -> list[Position]:
        """Return every position within radius of an agent or position, excluding it."""
        return self._space.nearby_positions(self._get_pos(target), radius)

    def random_agent(self, condition: Callable[[Agent], bool] | None = None) -> Agent | None:
        """Return a uniformly sampled live agent.

        Parameters
        ----------
        condition : Callable[[Agent], bool] | None, optional
            Only agents satisfying the condition are candidates, by default None

        Returns
        -------
        Agent | None
            None if no agent qualifies.
        """
        if condition is None:
            candidates = list(self._agents.all_ids())
        else:
            candidates = [a.unique_id for a in self._agents if condition(a)]
        if not candidates:
            return None
        return self._agents[candidates[self.random.integers(len(candidates))]]

    def all_agents(self) -> ValuesView[Agent]:
        """Return a lazy, restartable view over every live agent in insertion order."""
        return self._agents.all_agents()

    def agent_property(self, agent_id: int, name: str) -> Any:
        """Return the value of a property of an agent."""
        return self._agents.get_property(agent_id, name)

    def _get_id(self, agent: Agent | int) -> int:
        return agent.unique_id if isinstance(agent, Agent) else int(agent)

    def _get_pos(self, target: Agent | PositionLike) -> Position:
        if isinstance(target, Agent):
            return target.pos
        return self._space.normalize(target)

    ###----- Stepping -----###

    def step(self, n: StepsOrPredicate = 1) -> None:
        """Advance the model.

        Parameters
        ----------
        n : int | Callable[[Model, int], bool], optional
            Either the number of steps to run, or a predicate
            ``predicate(model, time)``. A predicate is evaluated before the
            first step and after every completed step; stepping stops as
            soon as it returns True. By default 1

        Raises
        ------
        RuntimeError
            If called while a step is already in progress.
        """
        if callable(n):
            while not n(self, self._time):
                self._step_once()
            return
        if n < 0:
            raise ValueError("The number of steps must be >= 0")
        for _ in range(n):
            self._step_once()

    def _step_once(self) -> None:
        if not self._step_lock.acquire(blocking=False):
            raise RuntimeError("A step is already in progress on this model")
        self._state = "stepping"
        try:
            if not self._agents_first and self._model_step is not None:
                self._model_step(self)
            if self._agent_step is not None:
                for agent_id in self._scheduler(self):
                    # Agents removed earlier in this step are skipped
                    if agent_id in self._agents:
                        self._agent_step(self._agents[agent_id], self)
            if self._agents_first and self._model_step is not None:
                self._model_step(self)
            self._time += 1
        finally:
            self._state = "idle"
            self._step_lock.release()

    def run(
        self,
        n: StepsOrPredicate,
        agent_data: AgentReporters | None = None,
        model_data: ModelReporters | None = None,
        final: bool = False,
        when: CollectWhen = None,
    ) -> tuple[pl.DataFrame, pl.DataFrame]:
        """Step the model while collecting data.

        Every step samples the state it starts from, tagged with the time at
        which the step starts, so ``run(k)`` from time 0 yields samples at
        times ``0, ..., k - 1``.

        Parameters
        ----------
        n : int | Callable[[Model, int], bool]
            The number of steps, or a stop predicate as in :meth:`step`.
        agent_data : AgentReporters | None, optional
            Agent reporters, see :class:`~agentgrid.concrete.datacollector.DataCollector`
        model_data : ModelReporters | None, optional
            Model reporters, see :class:`~agentgrid.concrete.datacollector.DataCollector`
        final : bool, optional
            Whether to also sample the state left by the last step, by default False
        when : Collection[int] | Callable[[Model, int], bool] | None, optional
            Which steps to sample: every step if None, the start times in a
            collection, or whenever a predicate of (model, time) is True.

        Returns
        -------
        tuple[pl.DataFrame, pl.DataFrame]
            The agent table and the model table.
        """
        from agentgrid.concrete.datacollector import DataCollector

        if when is None:
            trigger = None
        elif callable(when):
            trigger = lambda model: when(model, model.time)  # noqa: E731
        else:
            times = frozenset(when)
            trigger = lambda model: model.time in times  # noqa: E731
        collector = DataCollector(
            self,
            agent_reporters=agent_data,
            model_reporters=model_data,
            trigger=trigger,
        )

        if callable(n):
            while not n(self, self._time):
                self._collect_before_step(collector)
                self._step_once()
        else:
            if n < 0:
                raise ValueError("The number of steps must be >= 0")
            for _ in range(n):
                self._collect_before_step(collector)
                self._step_once()
        if final:
            collector.collect()

        data = collector.data
        return data["agent"], data["model"]

    @staticmethod
    def _collect_before_step(collector: DataCollector) -> None:
        if collector.has_trigger:
            collector.conditional_collect()
        else:
            collector.collect()

    ###----- Accessors -----###

    @property
    def time(self) -> int:
        """The number of completed steps."""
        return self._time

    @property
    def state(self) -> Literal["idle", "stepping"]:
        """Whether a step is currently executing."""
        return self._state

    @property
    def agent_count(self) -> int:
        """The number of live agents."""
        return len(self._agents)

    @property
    def agents(self) -> AgentRegistry:
        """The AgentRegistry holding every live agent."""
        return self._agents

    @property
    def space(self) -> GridSingle:
        """The grid of the model."""
        return self._space

    @property
    def scheduler(self) -> AbstractScheduler:
        return self._scheduler

    @property
    def properties(self) -> dict[str, Any]:
        """The global model parameters."""
        return self._properties

    @property
    def seed(self) -> int | Sequence[int]:
        return self._seed

    def __getattr__(self, name: str) -> Any:
        # Model properties are readable as attributes (model.min_to_be_happy)
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.__dict__["_properties"][name]
        except KeyError:
            raise AttributeError(
                f"{self.__class__.__name__} has no attribute or property {name!r}"
            ) from None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(agents={len(self._agents)}, "
            f"dimensions={self._space.dimensions}, time={self._time})"
        )
