"""agentgrid implementation of Schelling's segregation model with Typer CLI."""

from __future__ import annotations

import os
from time import perf_counter
from typing import Annotated

import polars as pl
import typer

from agentgrid import Agent, Model

GROUPS = ("red", "green")


def schelling_step(agent: Agent, model: Model) -> None:
    """Become happy with enough same-group neighbors, otherwise move away."""
    count_neighbors_same_group = 0
    for neighbor in model.nearby_agents(agent):
        if agent.group == neighbor.group:
            count_neighbors_same_group += 1
    if count_neighbors_same_group >= model.min_to_be_happy:
        agent.mood = True
    else:
        agent.mood = False
        model.move_agent_single(agent)


def initialize(
    num_agents: int = 320,
    gridsize: tuple[int, int] = (20, 20),
    min_to_be_happy: int = 3,
    seed: int | None = 42,
) -> Model:
    """Build a Schelling model with half red and half green unhappy agents."""
    model = Model(
        {"mood": bool, "group": str},
        dimensions=gridsize,
        properties={"min_to_be_happy": min_to_be_happy},
        agent_step=schelling_step,
        scheduler="randomly",
        seed=seed,
    )
    for n in range(num_agents):
        model.add_agent_single(
            mood=False, group=GROUPS[0] if n < num_agents / 2 else GROUPS[1]
        )
    return model


def happy_90(model: Model, time: int) -> bool:
    """Stop once 90% of the agents are happy, or after 1000 steps."""
    if time >= 1000:
        return True
    return sum(agent.mood for agent in model.all_agents()) >= 0.9 * model.agent_count


def x(agent: Agent) -> int:
    return agent.pos[0]


def y(agent: Agent) -> int:
    return agent.pos[1]


def simulate(
    num_agents: int,
    steps: int | None,
    seed: int | None = None,
    min_to_be_happy: int = 3,
) -> tuple[Model, pl.DataFrame]:
    model = initialize(num_agents=num_agents, min_to_be_happy=min_to_be_happy, seed=seed)
    agent_df, _ = model.run(
        happy_90 if steps is None else steps,
        agent_data=[("mood", sum), ("mood", "mean")],
        final=True,
    )
    return model, agent_df


app = typer.Typer(add_completion=False)


@app.command()
def run(
    agents: Annotated[int, typer.Option(help="Number of agents on the 20x20 grid.")] = 320,
    steps: Annotated[
        int | None,
        typer.Option(help="Number of steps; by default run until 90% are happy."),
    ] = None,
    seed: Annotated[int | None, typer.Option(help="Optional RNG seed.")] = 42,
    min_to_be_happy: Annotated[
        int, typer.Option(help="Same-group neighbors an agent needs to be happy.")
    ] = 3,
) -> None:
    runtime_typechecking = os.environ.get("AGENTGRID_RUNTIME_TYPECHECKING", "")
    if runtime_typechecking and runtime_typechecking.lower() not in {"0", "false"}:
        typer.secho(
            "Warning: AGENTGRID_RUNTIME_TYPECHECKING is enabled; this run will be slower.",
            fg=typer.colors.YELLOW,
        )
    typer.echo(f"Running Schelling model with {agents} agents")
    start_time = perf_counter()
    model, agent_df = simulate(
        num_agents=agents, steps=steps, seed=seed, min_to_be_happy=min_to_be_happy
    )
    typer.echo(
        f"Simulation complete in {perf_counter() - start_time:.2f} seconds "
        f"after {model.time} steps"
    )
    typer.echo(f"Happiness in the final 5 steps: {agent_df.tail(5)}")


if __name__ == "__main__":
    app()
