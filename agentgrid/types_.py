"""Type aliases for the agentgrid package."""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import polars as pl

if TYPE_CHECKING:
    from agentgrid.concrete.agentregistry import Agent
    from agentgrid.concrete.model import Model

###----- Space -----###
Position = tuple[int, ...]
PositionLike = int | Sequence[int] | np.ndarray
Metric = Literal["chebyshev", "euclidean", "manhattan"]
BoundaryMode = Literal["bounded", "periodic"]
Periodicity = bool | Sequence[bool]

###----- Agents -----###
PropertyType = type | pl.DataType | type[pl.DataType]
SchemaLike = Mapping[str, PropertyType]

###----- Engine -----###
AgentStepFunction = Callable[["Agent", "Model"], Any]
ModelStepFunction = Callable[["Model"], Any]
StopPredicate = Callable[["Model", int], bool]
StepsOrPredicate = int | StopPredicate
SchedulerLike = Literal["by_id", "fastest", "randomly"] | Callable[["Model"], Any] | None

###----- Data collection -----###
AggregationName = Literal["sum", "mean", "median", "min", "max", "std", "count"]
AggregationFunction = Callable[[list[Any]], Any]
AgentSource = str | Callable[["Agent"], Any]
AgentReporter = AgentSource | tuple[AgentSource, AggregationName | AggregationFunction]
AgentReporters = Mapping[str, AgentReporter] | Sequence[AgentReporter]
ModelReporter = str | Callable[["Model"], Any]
ModelReporters = Mapping[str, ModelReporter] | Sequence[ModelReporter]
CollectWhen = Collection[int] | StopPredicate | None

###----- Tables -----###
DataFrame = pl.DataFrame
Series = pl.Series
