from __future__ import annotations

import pytest

from agentgrid import GridFullError, InvalidConfigError, Model, Randomly, api
from tests.conftest import same_group_step


@pytest.fixture
def fix_api_model() -> Model:
    return api.create_model(
        {"mood": bool, "group": str},
        (3, 3),
        properties={"min_to_be_happy": 1},
        agent_step=same_group_step,
        seed=0,
    )


class TestApi:
    def test_create_model(self, fix_api_model: Model):
        assert isinstance(fix_api_model, Model)
        assert fix_api_model.space.periodic == (False, False)
        assert fix_api_model.space.metric == "chebyshev"
        assert api.current_time(fix_api_model) == 0
        assert api.agent_count(fix_api_model) == 0

        model = api.create_model(
            {"mood": bool},
            (4, 5),
            boundary_mode=["periodic", "bounded"],
            metric="manhattan",
            scheduler_policy="randomly",
        )
        assert model.space.periodic == (True, False)
        assert model.space.metric == "manhattan"
        assert isinstance(model.scheduler, Randomly)
        assert api.create_model({"mood": bool}, (2, 2), "periodic").space.periodic == (
            True,
            True,
        )

        with pytest.raises(InvalidConfigError, match="boundary mode"):
            api.create_model({"mood": bool}, (2, 2), boundary_mode="toroidal")
        with pytest.raises(InvalidConfigError):
            api.create_model({"mood": bool}, (2, 2), metric="hamming")
        with pytest.raises(InvalidConfigError):
            api.create_model({"mood": bool}, (2, 2), scheduler_policy="reverse")

    def test_agents(self, fix_api_model: Model):
        a = api.add_agent(fix_api_model, (1, 1), mood=False, group="red")
        b = api.add_agent(fix_api_model, (0, 0), mood=False, group="red")
        assert (a, b) == (1, 2)
        assert api.agent_count(fix_api_model) == 2
        assert api.agent_property(fix_api_model, a, "pos") == (1, 1)
        assert [agent.unique_id for agent in api.all_agents(fix_api_model)] == [1, 2]
        api.remove_agent(fix_api_model, b)
        assert api.agent_count(fix_api_model) == 1

    def test_fill_grid(self, fix_api_model: Model):
        for _ in range(9):
            api.add_agent(fix_api_model, mood=False, group="green")
        with pytest.raises(GridFullError):
            api.add_agent(fix_api_model, mood=False, group="green")

    def test_step(self, fix_api_model: Model):
        a = api.add_agent(fix_api_model, (1, 1), mood=False, group="red")
        api.add_agent(fix_api_model, (0, 0), mood=False, group="red")
        api.step(fix_api_model)
        assert api.current_time(fix_api_model) == 1
        assert api.agent_property(fix_api_model, a, "mood") is True
        assert api.agent_property(fix_api_model, a, "pos") == (1, 1)

        api.step(fix_api_model, lambda model, time: time >= 4)
        assert api.current_time(fix_api_model) == 4

    def test_run(self, fix_api_model: Model):
        for mood in [True, False, True, True]:
            api.add_agent(fix_api_model, mood=mood, group="red")
        agent_df, _ = api.run(fix_api_model, 0, agent_data=[("mood", sum)], final=True)
        assert agent_df.row(0) == (0, 3)

        agent_df, model_df = api.run(
            fix_api_model, 2, agent_data=["mood"], model_data=["min_to_be_happy"]
        )
        assert agent_df.height == 2 * 4
        assert model_df["min_to_be_happy"].to_list() == [1, 1]
