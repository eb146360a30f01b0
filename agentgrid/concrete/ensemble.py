"""
Ensemble and parameter-scan runners for agentgrid.

These helpers run several fully independent models one after another and
stack their collected tables, so that distributional statistics can be
computed with ordinary Polars operations. No state is shared between the
models.

Functions:
    ensemble_run(models, n, ...):
        Run every model and tag its rows with a 1-based ``ensemble`` column.
    paramscan(parameters, initialize, n, ...):
        Build one model per combination of the list-valued parameters, run
        them, and tag their rows with the parameter values.

Usage:
    from agentgrid.concrete.ensemble import ensemble_run, paramscan

    models = [initialize(seed=seed) for seed in range(10)]
    agent_df, model_df = ensemble_run(models, 5, agent_data=[("mood", sum)])

    agent_df, model_df = paramscan(
        {"min_to_be_happy": [2, 3, 4], "seed": 42},
        initialize,
        5,
        agent_data=[("mood", sum)],
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from itertools import product
from typing import TYPE_CHECKING, Any

import polars as pl

from agentgrid.types_ import AgentReporters, CollectWhen, ModelReporters, StepsOrPredicate

if TYPE_CHECKING:
    from agentgrid.concrete.model import Model


def _stack(frames: list[pl.DataFrame]) -> pl.DataFrame:
    frames = [df for df in frames if not df.is_empty()]
    if not frames:
        return pl.DataFrame()
    return pl.concat(frames, how="vertical_relaxed")


def ensemble_run(
    models: Iterable[Model],
    n: StepsOrPredicate,
    agent_data: AgentReporters | None = None,
    model_data: ModelReporters | None = None,
    final: bool = False,
    when: CollectWhen = None,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Run independent models and stack their collected data.

    Parameters
    ----------
    models : Iterable[Model]
        The models to run. Each one is advanced in place.
    n : int | Callable[[Model, int], bool]
        The number of steps, or a stop predicate, applied to every model.
    agent_data : AgentReporters | None, optional
        Agent reporters, as for :meth:`Model.run`.
    model_data : ModelReporters | None, optional
        Model reporters, as for :meth:`Model.run`.
    final : bool, optional
        Whether to also sample each model after its last step, by default False
    when : Collection[int] | Callable[[Model, int], bool] | None, optional
        Which steps to sample, as for :meth:`Model.run`.

    Returns
    -------
    tuple[pl.DataFrame, pl.DataFrame]
        The agent and model tables with an extra ``ensemble`` column.
    """
    agent_frames, model_frames = [], []
    for i, model in enumerate(models, start=1):
        agent_df, model_df = model.run(
            n, agent_data=agent_data, model_data=model_data, final=final, when=when
        )
        tag = pl.lit(i, dtype=pl.Int64).alias("ensemble")
        agent_frames.append(agent_df.with_columns(tag) if agent_df.width else agent_df)
        model_frames.append(model_df.with_columns(tag) if model_df.width else model_df)
    return _stack(agent_frames), _stack(model_frames)


def expand_parameters(parameters: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Return every combination of the list-valued parameters.

    Non-list values are kept constant in every combination.

    Examples
    --------
    >>> expand_parameters({"a": [1, 2], "b": 0})
    [{'a': 1, 'b': 0}, {'a': 2, 'b': 0}]
    """
    names = list(parameters)
    choices = [
        value if isinstance(value, list) else [value] for value in parameters.values()
    ]
    return [dict(zip(names, combo)) for combo in product(*choices)]


def paramscan(
    parameters: Mapping[str, Any],
    initialize: Callable[..., Model],
    n: StepsOrPredicate,
    agent_data: AgentReporters | None = None,
    model_data: ModelReporters | None = None,
    final: bool = False,
    when: CollectWhen = None,
    include_constants: bool = False,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Run one model per parameter combination and stack their data.

    Parameters
    ----------
    parameters : Mapping[str, Any]
        Keyword arguments for ``initialize``. List values are scanned; any
        other value is passed unchanged to every call.
    initialize : Callable[..., Model]
        Builds a model from keyword arguments.
    n : int | Callable[[Model, int], bool]
        The number of steps, or a stop predicate.
    agent_data, model_data, final, when
        As for :meth:`Model.run`.
    include_constants : bool, optional
        Whether to add columns for the non-scanned parameters too, by default False

    Returns
    -------
    tuple[pl.DataFrame, pl.DataFrame]
        The agent and model tables with one extra column per parameter.
    """
    tagged = [
        name
        for name, value in parameters.items()
        if include_constants or isinstance(value, list)
    ]
    agent_frames, model_frames = [], []
    for combination in expand_parameters(parameters):
        model = initialize(**combination)
        agent_df, model_df = model.run(
            n, agent_data=agent_data, model_data=model_data, final=final, when=when
        )
        tags = [pl.lit(combination[name]).alias(name) for name in tagged]
        agent_frames.append(agent_df.with_columns(tags) if agent_df.width else agent_df)
        model_frames.append(model_df.with_columns(tags) if model_df.width else model_df)
    return _stack(agent_frames), _stack(model_frames)
