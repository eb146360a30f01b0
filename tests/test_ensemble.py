from __future__ import annotations

import polars as pl
import pytest

from agentgrid import Model, ensemble_run, paramscan
from agentgrid.concrete.ensemble import expand_parameters
from tests.conftest import SCHEMA, add_wealth


def initialize(agents: int = 3, start: int = 0, seed: int = 0) -> Model:
    model = Model(SCHEMA, dimensions=(4, 4), agent_step=add_wealth, seed=seed)
    for _ in range(agents):
        model.add_agent_single(mood=False, group="red", wealth=start)
    return model


def population(model: Model) -> int:
    return model.agent_count


class TestEnsemble:
    def test_ensemble_run(self):
        models = [initialize(seed=seed) for seed in range(3)]
        agent_df, model_df = ensemble_run(
            models, 2, agent_data=[("wealth", sum)], model_data=[population]
        )
        assert agent_df.columns == ["time", "sum_wealth", "ensemble"]
        assert agent_df.height == 6
        assert agent_df["ensemble"].to_list() == [1, 1, 2, 2, 3, 3]
        assert agent_df.schema["ensemble"] == pl.Int64
        assert agent_df["sum_wealth"].to_list() == [0, 3] * 3
        assert model_df["population"].to_list() == [3] * 6
        assert all(model.time == 2 for model in models)

    def test_ensemble_run_without_model_data(self):
        agent_df, model_df = ensemble_run(
            [initialize(), initialize()], 1, agent_data=["wealth"], final=True
        )
        assert agent_df.height == 2 * 2 * 3
        assert model_df.is_empty()

    def test_expand_parameters(self):
        assert expand_parameters({"a": [1, 2], "b": 0, "c": ["x", "y"]}) == [
            {"a": 1, "b": 0, "c": "x"},
            {"a": 1, "b": 0, "c": "y"},
            {"a": 2, "b": 0, "c": "x"},
            {"a": 2, "b": 0, "c": "y"},
        ]
        assert expand_parameters({"a": 1}) == [{"a": 1}]

    def test_paramscan(self):
        agent_df, model_df = paramscan(
            {"agents": [1, 2], "start": [0, 10], "seed": 4},
            initialize,
            1,
            agent_data=[("wealth", sum)],
        )
        assert agent_df.columns == ["time", "sum_wealth", "agents", "start"]
        assert agent_df.height == 4
        assert agent_df.select("agents", "start", "sum_wealth").rows() == [
            (1, 0, 0),
            (1, 10, 10),
            (2, 0, 0),
            (2, 10, 20),
        ]
        assert model_df.is_empty()

    @pytest.mark.parametrize("include_constants", [True, False])
    def test_paramscan_constants(self, include_constants: bool):
        agent_df, _ = paramscan(
            {"agents": [1, 2], "seed": 4},
            initialize,
            1,
            agent_data=[("wealth", sum)],
            include_constants=include_constants,
        )
        assert ("seed" in agent_df.columns) is include_constants
