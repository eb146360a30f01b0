"""
Concrete class for data collection in agentgrid.

This module defines a `DataCollector` implementation that samples model-level
and agent-level data during simulations and keeps it in memory as Polars
frames.

Classes:
    DataCollector:
        Samples agent and model reporters every time it is asked to, tagging
        each sample with the model time.

Agent reporters:
    Agent reporters are given as a mapping from column label to reporter, or
    as a list of reporters whose labels are derived automatically. A reporter
    is one of:

    - a property name (``"mood"``; ``"pos"`` and ``"unique_id"`` are also
      accepted): one value per agent, stored with the schema dtype;
    - a function of an agent (``lambda agent: agent.pos[0]``): one value per
      agent;
    - a pair ``(source, aggregation)`` where source is either of the above
      and aggregation is a callable over the list of values (``sum``,
      ``statistics.mean``) or the name of a Polars reduction (``"sum"``,
      ``"mean"``, ``"median"``, ``"min"``, ``"max"``, ``"std"``, ``"count"``):
      one value per sample.

    Per-agent and aggregated reporters produce differently shaped tables and
    cannot be mixed in one collector. Per-agent tables have the columns
    ``time``, ``id`` and one column per reporter; aggregated tables have
    ``time`` and one column per reporter. Derived labels are the property
    name, the function ``__name__``, or ``"{aggregation}_{source}"``.

Model reporters:
    A mapping from label to a model property name or a function of the
    model, or a list of those. Model tables have ``time`` and one column per
    reporter.

Usage:
    from agentgrid.concrete.datacollector import DataCollector

    dc = DataCollector(model, agent_reporters=[("mood", sum)])
    model.step()
    dc.collect()
    dc.data["agent"]  # time, sum_mood
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any
from warnings import warn

import numpy as np
import polars as pl

from agentgrid.abstract.datacollector import AbstractDataCollector
from agentgrid.exceptions import InvalidConfigError
from agentgrid.types_ import (
    AgentReporter,
    AgentReporters,
    AgentSource,
    ModelReporter,
    ModelReporters,
)
from agentgrid.utils import callable_name

if TYPE_CHECKING:
    from agentgrid.concrete.agentregistry import Agent
    from agentgrid.concrete.model import Model

_POLARS_AGGREGATIONS = ("sum", "mean", "median", "min", "max", "std", "count")


class _RawProperty:
    """A stored property of every agent."""

    def __init__(self, name: str, model: Model) -> None:
        schema = model.agents.schema
        if name == "pos":
            self.dtype = pl.List(pl.Int64)
        elif name == "unique_id":
            self.dtype = pl.Int64()
        elif name in schema:
            self.dtype = schema.dtypes[name]
        else:
            raise InvalidConfigError(f"Unknown agent property: {name!r}")
        self.name = name

    def series(self, label: str, agents: list[Agent]) -> pl.Series:
        if self.name == "pos":
            values = [list(agent.pos) for agent in agents]
        else:
            values = [getattr(agent, self.name) for agent in agents]
        return pl.Series(label, values, dtype=self.dtype)


class _DerivedFunction:
    """A value computed from every agent by a user function."""

    def __init__(self, func: Callable[[Agent], Any]) -> None:
        self.func = func
        self.name = callable_name(func)

    def series(self, label: str, agents: list[Agent]) -> pl.Series:
        return pl.Series(label, [self.func(agent) for agent in agents], strict=False)


class _Aggregated:
    """A reduction of a per-agent column to one value per sample."""

    def __init__(
        self,
        source: _RawProperty | _DerivedFunction,
        aggregation: str | Callable[[list[Any]], Any],
    ) -> None:
        if isinstance(aggregation, str):
            if aggregation not in _POLARS_AGGREGATIONS:
                raise InvalidConfigError(
                    f"Unknown aggregation {aggregation!r}, expected a callable or one of {_POLARS_AGGREGATIONS}"
                )
            self.agg_name = aggregation
        elif callable(aggregation):
            self.agg_name = callable_name(aggregation)
        else:
            raise InvalidConfigError(f"Invalid aggregation: {aggregation!r}")
        self.source = source
        self.aggregation = aggregation
        self.name = f"{self.agg_name}_{source.name}"

    def value(self, label: str, agents: list[Agent]) -> Any:
        values = self.source.series(label, agents)
        if isinstance(self.aggregation, str):
            expr = getattr(pl.col(label), self.aggregation)()
            return values.to_frame().select(expr).item()
        result = self.aggregation(values.to_list())
        if isinstance(result, np.generic):
            result = result.item()
        return result


class DataCollector(AbstractDataCollector):
    def __init__(
        self,
        model: Model,
        agent_reporters: AgentReporters | None = None,
        model_reporters: ModelReporters | None = None,
        trigger: Callable[[Any], bool] | None = None,
    ):
        """
        Initialize the DataCollector with configuration options.

        Parameters
        ----------
        model : Model
            The model object from which data is collected.
        agent_reporters : AgentReporters | None
            Properties, functions or aggregations to collect at the agent level.
        model_reporters : ModelReporters | None
            Properties or functions to collect at the model level.
        trigger : Callable[[Any], bool] | None
            A function(model) -> bool that determines whether to collect data.

        Raises
        ------
        InvalidConfigError
            If a reporter is invalid, labels collide, or per-agent and
            aggregated agent reporters are mixed.
        """
        super().__init__(
            model=model,
            agent_reporters=agent_reporters,
            model_reporters=model_reporters,
            trigger=trigger,
        )
        self._agent_columns = self._parse_agent_reporters(self._agent_reporters)
        self._model_columns = self._parse_model_reporters(self._model_reporters)
        self._aggregated = any(
            isinstance(col, _Aggregated) for col in self._agent_columns.values()
        )
        if self._aggregated and not all(
            isinstance(col, _Aggregated) for col in self._agent_columns.values()
        ):
            raise InvalidConfigError(
                "Per-agent and aggregated agent reporters cannot be mixed in one collection"
            )
        if not self._agent_columns and not self._model_columns:
            warn(
                "DataCollector has no agent or model reporters; collected tables will be empty",
                RuntimeWarning,
                stacklevel=2,
            )

    def _parse_source(self, source: AgentSource) -> _RawProperty | _DerivedFunction:
        if isinstance(source, str):
            return _RawProperty(source, self._model)
        if callable(source):
            return _DerivedFunction(source)
        raise InvalidConfigError(f"Invalid agent reporter: {source!r}")

    def _parse_agent_reporter(
        self, reporter: AgentReporter
    ) -> _RawProperty | _DerivedFunction | _Aggregated:
        if isinstance(reporter, tuple):
            if len(reporter) != 2:
                raise InvalidConfigError(
                    f"Aggregated reporters must be (source, aggregation) pairs, got {reporter!r}"
                )
            source, aggregation = reporter
            return _Aggregated(self._parse_source(source), aggregation)
        return self._parse_source(reporter)

    def _parse_agent_reporters(
        self, reporters: AgentReporters
    ) -> dict[str, _RawProperty | _DerivedFunction | _Aggregated]:
        if isinstance(reporters, Mapping):
            items = [
                (label, self._parse_agent_reporter(r)) for label, r in reporters.items()
            ]
        else:
            parsed = [self._parse_agent_reporter(r) for r in reporters]
            items = [(col.name, col) for col in parsed]
        return self._unique_labels(items, reserved={"time", "id"})

    def _parse_model_reporters(
        self, reporters: ModelReporters
    ) -> dict[str, ModelReporter]:
        if isinstance(reporters, Mapping):
            items = list(reporters.items())
        else:
            items = [
                (r if isinstance(r, str) else callable_name(r), r) for r in reporters
            ]
        for label, reporter in items:
            if isinstance(reporter, str):
                if reporter not in self._model.properties:
                    raise InvalidConfigError(f"Unknown model property: {reporter!r}")
            elif not callable(reporter):
                raise InvalidConfigError(f"Invalid model reporter: {reporter!r}")
        return self._unique_labels(items, reserved={"time"})

    @staticmethod
    def _unique_labels(items: list[tuple[str, Any]], reserved: set[str]) -> dict[str, Any]:
        columns: dict[str, Any] = {}
        for label, column in items:
            if not isinstance(label, str):
                raise InvalidConfigError(f"Column labels must be strings, got {label!r}")
            if label in reserved:
                raise InvalidConfigError(f"Column label {label!r} is reserved")
            if label in columns:
                raise InvalidConfigError(f"Duplicate column label {label!r}")
            columns[label] = column
        return columns

    def _collect(self):
        """
        Collect data from the model and agents for the current time.

        This method checks for the presence of model and agent reporters
        and calls the appropriate collection routines for each.
        """
        if self._model_columns:
            self._collect_model_reporters()

        if self._agent_columns:
            if self._aggregated:
                self._collect_aggregated_reporters()
            else:
                self._collect_agent_reporters()

    def _collect_model_reporters(self):
        """
        Collect model-level data using the model reporters.

        Creates a one-row LazyFrame with the time and the value of each
        reporter, and appends it to internal storage.
        """
        model_data_dict: dict[str, Any] = {"time": self._model.time}
        for column_name, reporter in self._model_columns.items():
            if isinstance(reporter, str):
                model_data_dict[column_name] = self._model.properties[reporter]
            else:
                model_data_dict[column_name] = reporter(self._model)
        model_lazy_frame = pl.LazyFrame([model_data_dict])
        self._frames.append(("model", self._model.time, model_lazy_frame))

    def _collect_agent_reporters(self):
        """
        Collect per-agent data using the agent reporters.

        Constructs a LazyFrame with one row per live agent, in insertion
        order, and appends it to internal storage.
        """
        agents = list(self._model.agents)
        agent_data_dict = {
            "id": pl.Series("id", [a.unique_id for a in agents], dtype=pl.Int64)
        }
        for col_name, column in self._agent_columns.items():
            agent_data_dict[col_name] = column.series(col_name, agents)
        agent_lazy_frame = (
            pl.LazyFrame(agent_data_dict)
            .with_columns(pl.lit(self._model.time, dtype=pl.Int64).alias("time"))
            .select("time", "id", *self._agent_columns)
        )
        self._frames.append(("agent", self._model.time, agent_lazy_frame))

    def _collect_aggregated_reporters(self):
        """
        Collect aggregated agent data.

        Reduces every reporter over the live agents and appends a one-row
        LazyFrame to internal storage.
        """
        agents = list(self._model.agents)
        agent_data_dict: dict[str, Any] = {"time": self._model.time}
        for col_name, column in self._agent_columns.items():
            agent_data_dict[col_name] = column.value(col_name, agents)
        agent_lazy_frame = pl.LazyFrame([agent_data_dict])
        self._frames.append(("agent", self._model.time, agent_lazy_frame))

    @property
    def data(self) -> dict[str, pl.DataFrame]:
        """
        Retrieve the collected data as eagerly evaluated Polars DataFrames.

        Returns
        -------
        dict[str, pl.DataFrame]
            A dictionary with keys "model" and "agent" mapping to concatenated DataFrames of collected data.
        """
        model_frames = [lf.collect() for kind, _, lf in self._frames if kind == "model"]
        agent_frames = [lf.collect() for kind, _, lf in self._frames if kind == "agent"]
        return {
            "model": pl.concat(model_frames, how="vertical_relaxed")
            if model_frames
            else pl.DataFrame(),
            "agent": pl.concat(agent_frames, how="vertical_relaxed")
            if agent_frames
            else pl.DataFrame(),
        }
