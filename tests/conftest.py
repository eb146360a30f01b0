"""Shared fixtures for the agentgrid test suite.

Runtime type checking stays opt-in: export AGENTGRID_RUNTIME_TYPECHECKING=1
before running pytest to exercise the package under beartype.
"""

from __future__ import annotations

import pytest

from agentgrid import Agent, Model

SCHEMA = {"mood": bool, "group": str, "wealth": int}


def same_group_step(agent: Agent, model: Model) -> None:
    same = sum(1 for other in model.nearby_agents(agent) if other.group == agent.group)
    agent.mood = same >= model.min_to_be_happy
    if not agent.mood:
        model.move_agent_single(agent)


def add_wealth(agent: Agent, model: Model) -> None:
    agent.wealth += 1


@pytest.fixture
def fix_model() -> Model:
    """A 5x5 bounded model with four agents on the main diagonal."""
    model = Model(SCHEMA, dimensions=(5, 5), agent_step=add_wealth, seed=42)
    for i, group in enumerate(["red", "green", "red", "green"]):
        model.add_agent((i, i), mood=False, group=group, wealth=i)
    return model


@pytest.fixture
def fix_empty_model() -> Model:
    return Model(SCHEMA, dimensions=(3, 3), seed=1)
