from __future__ import annotations

import numpy as np
import pytest

from agentgrid import (
    Agent,
    GridFullError,
    Model,
    NotFoundError,
    OccupiedCellError,
    OutOfBoundsError,
    SchemaError,
)
from tests.conftest import SCHEMA, same_group_step


def assert_in_sync(model: Model) -> None:
    occupied = {
        tuple(int(c) for c in idx) for idx in np.argwhere(model.space._cells != 0)
    }
    assert occupied == {agent.pos for agent in model.all_agents()}
    for agent in model.all_agents():
        assert model.space.occupant_at(agent.pos) == agent.unique_id
        assert model.space.position_of(agent.unique_id) == agent.pos
    assert len(model.space) == model.agent_count


class Test_Model:
    def test___init__(self, fix_empty_model: Model):
        model = fix_empty_model
        assert model.time == 0
        assert model.state == "idle"
        assert model.agent_count == 0
        assert model.space.dimensions == (3, 3)
        assert model.seed == 1
        assert repr(model) == "Model(agents=0, dimensions=(3, 3), time=0)"

    def test_properties(self):
        model = Model(SCHEMA, dimensions=(3, 3), properties={"min_to_be_happy": 3})
        assert model.min_to_be_happy == 3
        assert model.properties == {"min_to_be_happy": 3}
        with pytest.raises(AttributeError):
            model.max_to_be_happy

    def test_add_agent(self, fix_empty_model: Model):
        model = fix_empty_model
        agent = model.add_agent((1, 2), mood=False, group="red", wealth=0)
        assert isinstance(agent, Agent)
        assert agent.unique_id == 1
        assert agent.pos == (1, 2)
        assert model.space.occupant_at((1, 2)) == 1

        # Failed additions leave no record behind
        with pytest.raises(OccupiedCellError):
            model.add_agent((1, 2), mood=False, group="red", wealth=0)
        with pytest.raises(OutOfBoundsError):
            model.add_agent((3, 0), mood=False, group="red", wealth=0)
        with pytest.raises(SchemaError):
            model.add_agent((0, 0), mood=False)
        assert model.agent_count == 1
        assert model.space.is_empty((0, 0))
        assert model.agents.next_id == 2
        assert_in_sync(model)

    def test_add_agent_until_full(self, fix_empty_model: Model):
        model = fix_empty_model
        for _ in range(9):
            agent = model.add_agent(mood=False, group="red", wealth=0)
            assert model.space.occupant_at(agent.pos) == agent.unique_id
        assert model.agent_count == 9
        assert model.space.free_cell_count == 0
        with pytest.raises(GridFullError):
            model.add_agent_single(mood=False, group="red", wealth=0)
        assert model.agent_count == 9
        assert_in_sync(model)

    def test_remove_agent(self, fix_model: Model):
        agent = fix_model.agents[2]
        fix_model.remove_agent(agent)
        assert fix_model.agent_count == 3
        assert fix_model.space.is_empty((1, 1))
        with pytest.raises(NotFoundError):
            fix_model.remove_agent(2)
        fix_model.remove_agent(4)
        assert_in_sync(fix_model)

    def test_move_agent(self, fix_model: Model):
        assert fix_model.move_agent(1, (4, 0)) == (4, 0)
        assert fix_model.agents[1].pos == (4, 0)
        assert fix_model.space.is_empty((0, 0))
        assert_in_sync(fix_model)

    def test_move_agent_atomic(self, fix_model: Model):
        with pytest.raises(OccupiedCellError):
            fix_model.move_agent(1, (1, 1))
        assert fix_model.agents[1].pos == (0, 0)
        assert fix_model.agents[2].pos == (1, 1)
        assert_in_sync(fix_model)
        with pytest.raises(NotFoundError):
            fix_model.move_agent(10, (4, 4))

    def test_move_agent_single(self, fix_model: Model):
        new_pos = fix_model.move_agent_single(fix_model.agents[1])
        assert fix_model.agents[1].pos == new_pos
        assert_in_sync(fix_model)

        full = Model(SCHEMA, dimensions=(1, 2), seed=0)
        full.add_agent((0, 0), mood=False, group="red", wealth=0)
        full.add_agent((0, 1), mood=False, group="red", wealth=0)
        assert full.move_agent_single(1) == (0, 0)
        assert_in_sync(full)

    def test_invariant_under_random_operations(self):
        model = Model(SCHEMA, dimensions=(4, 4), seed=11)
        rng = np.random.default_rng(5)
        for _ in range(200):
            op = rng.integers(3)
            if op == 0 and model.space.free_cell_count:
                model.add_agent(mood=False, group="red", wealth=0)
            elif op == 1 and model.agent_count:
                model.remove_agent(model.random_agent())
            elif model.agent_count:
                agent = model.random_agent()
                target = tuple(int(c) for c in rng.integers(0, 4, size=2))
                try:
                    model.move_agent(agent, target)
                except OccupiedCellError:
                    pass
            assert_in_sync(model)

    def test_nearby(self, fix_model: Model):
        agent = fix_model.agents[2]
        assert sorted(fix_model.nearby_ids(agent)) == [1, 3]
        assert [a.unique_id for a in fix_model.nearby_agents((0, 0))] == [2]
        assert sorted(fix_model.nearby_ids(agent, radius=2)) == [1, 3, 4]
        assert (1, 1) not in fix_model.nearby_positions(agent)
        assert len(fix_model.nearby_positions((2, 2))) == 8

    def test_random_agent(self, fix_model: Model):
        assert fix_model.random_agent().unique_id in {1, 2, 3, 4}
        chosen = fix_model.random_agent(lambda a: a.group == "green")
        assert chosen.unique_id in {2, 4}
        assert fix_model.random_agent(lambda a: a.wealth > 10) is None

    def test_all_agents(self, fix_model: Model):
        agents = fix_model.all_agents()
        assert [a.unique_id for a in agents] == [1, 2, 3, 4]
        assert [a.unique_id for a in agents] == [1, 2, 3, 4]
        assert fix_model.agent_property(3, "group") == "red"
        assert fix_model.agent_property(3, "pos") == (2, 2)

    def test_step(self, fix_model: Model):
        fix_model.step()
        assert fix_model.time == 1
        fix_model.step(3)
        assert fix_model.time == 4
        fix_model.step(0)
        assert fix_model.time == 4
        assert [a.wealth for a in fix_model.all_agents()] == [4, 5, 6, 7]
        with pytest.raises(ValueError):
            fix_model.step(-1)

    def test_step_predicate(self, fix_model: Model):
        seen = []

        def stop_at_three(model, time):
            seen.append(time)
            return time >= 3

        fix_model.step(stop_at_three)
        assert fix_model.time == 3
        assert seen == [0, 1, 2, 3]

        # Already satisfied: no step is taken
        fix_model.step(lambda model, time: True)
        assert fix_model.time == 3

        fix_model.step(lambda model, time: model.agents[1].wealth >= 5)
        assert fix_model.agents[1].wealth == 5
        assert fix_model.time == 5

    def test_model_step_order(self):
        def agent_step(agent, model):
            model.log.append(("agent", agent.unique_id))

        def model_step(model):
            model.log.append(("model", model.time))

        for agents_first, expected in [
            (True, [("agent", 1), ("agent", 2), ("model", 0)]),
            (False, [("model", 0), ("agent", 1), ("agent", 2)]),
        ]:
            model = Model(
                SCHEMA,
                dimensions=(3, 3),
                properties={"log": []},
                agent_step=agent_step,
                model_step=model_step,
                agents_first=agents_first,
            )
            model.add_agent((0, 0), mood=False, group="red", wealth=0)
            model.add_agent((2, 2), mood=False, group="red", wealth=0)
            model.step()
            assert model.log == expected

    def test_dead_agents_are_skipped(self):
        def agent_step(agent, model):
            model.activated.append(agent.unique_id)
            if agent.unique_id == 1:
                model.remove_agent(2)
            if agent.unique_id == 3:
                model.add_agent(mood=False, group="green", wealth=0)

        model = Model(
            SCHEMA,
            dimensions=(3, 3),
            properties={"activated": []},
            agent_step=agent_step,
            seed=3,
        )
        for pos in [(0, 0), (1, 1), (2, 2)]:
            model.add_agent(pos, mood=False, group="red", wealth=0)
        model.step()
        # Agent 4 is born mid-step and only activates from the next step
        assert model.activated == [1, 3]
        assert model.agent_count == 3
        assert_in_sync(model)

    def test_reentrant_step(self):
        def agent_step(agent, model):
            assert model.state == "stepping"
            if model.reenter:
                model.step()

        model = Model(
            SCHEMA, dimensions=(3, 3), properties={"reenter": True}, agent_step=agent_step
        )
        model.add_agent((0, 0), mood=False, group="red", wealth=0)
        with pytest.raises(RuntimeError, match="already in progress"):
            model.step()
        assert model.state == "idle"
        assert model.time == 0

        model.properties["reenter"] = False
        model.step()
        assert model.time == 1

    def test_failed_step_keeps_committed_moves(self):
        def agent_step(agent, model):
            # Agent 1 moves away first, then agent 2 collides with agent 3
            if agent.unique_id == 1:
                model.move_agent(agent, (0, 2))
            elif agent.unique_id == 2:
                model.move_agent(agent, (2, 2))

        model = Model(SCHEMA, dimensions=(3, 3), agent_step=agent_step, seed=0)
        for pos in [(0, 0), (1, 1), (2, 2)]:
            model.add_agent(pos, mood=False, group="red", wealth=0)

        with pytest.raises(OccupiedCellError):
            model.step()
        assert model.time == 0
        assert model.state == "idle"
        assert model.agents[1].pos == (0, 2)
        assert model.agents[2].pos == (1, 1)
        assert model.agents[3].pos == (2, 2)
        assert_in_sync(model)

    def test_seeded_repeatability(self):
        def build(seed):
            model = Model(
                SCHEMA,
                dimensions=(10, 10),
                properties={"min_to_be_happy": 3},
                agent_step=same_group_step,
                scheduler="randomly",
                seed=seed,
            )
            for i in range(60):
                model.add_agent_single(mood=False, group=("red", "green")[i % 2], wealth=0)
            return model

        first, second = build(123), build(123)
        first.step(5)
        second.step(5)
        assert [a.as_dict() for a in first.all_agents()] == [
            a.as_dict() for a in second.all_agents()
        ]
        assert_in_sync(first)

    def test_reset_randomizer(self, fix_model: Model):
        fix_model.reset_randomizer(9)
        first = [fix_model.space.random_free_cell() for _ in range(5)]
        fix_model.reset_randomizer(9)
        assert [fix_model.space.random_free_cell() for _ in range(5)] == first
        assert fix_model.seed == 9
        assert fix_model.space.random is fix_model.random

    def test_two_agent_scenario(self):
        model = Model(
            SCHEMA,
            dimensions=(3, 3),
            periodic=False,
            metric="chebyshev",
            properties={"min_to_be_happy": 1},
            agent_step=same_group_step,
            seed=0,
        )
        a = model.add_agent((1, 1), mood=False, group="red", wealth=0)
        b = model.add_agent((0, 0), mood=False, group="red", wealth=0)
        model.step()
        assert a.mood is True
        assert a.pos == (1, 1)
        assert b.mood is True
        assert b.pos == (0, 0)
        assert model.time == 1
