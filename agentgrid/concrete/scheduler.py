"""
Concrete activation-order policies for agentgrid.

Classes:
    ByID(AbstractScheduler):
        Ascending id order. The default policy.
    Fastest(AbstractScheduler):
        Registry insertion order, without sorting.
    Randomly(AbstractScheduler):
        A fresh uniform permutation every step, drawn from the model's
        generator.
    ByProperty(AbstractScheduler):
        Ascending order of a property (or a function of the agent), ties
        broken by ascending id.
    CustomScheduler(AbstractScheduler):
        Wraps a user callable ``func(model) -> Iterable[int]`` and checks that
        its result is a permutation of the live ids.

Functions:
    get_scheduler(policy):
        Resolve a policy name, callable or scheduler instance.

Usage:
    from agentgrid.concrete.scheduler import ByProperty, get_scheduler

    scheduler = ByProperty("group")
    scheduler = get_scheduler("randomly")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import numpy as np

from agentgrid.abstract.scheduler import AbstractScheduler
from agentgrid.exceptions import InvalidConfigError
from agentgrid.types_ import SchedulerLike
from agentgrid.utils import callable_name

if TYPE_CHECKING:
    from agentgrid.concrete.agentregistry import Agent
    from agentgrid.concrete.model import Model


class ByID(AbstractScheduler):
    """Activate agents in ascending id order."""

    def order(self, model: Model) -> list[int]:
        return sorted(model.agents.all_ids())


class Fastest(AbstractScheduler):
    """Activate agents in the order they were added to the model."""

    def order(self, model: Model) -> list[int]:
        return list(model.agents.all_ids())


class Randomly(AbstractScheduler):
    """Activate agents in a random order, drawn anew every step."""

    def order(self, model: Model) -> list[int]:
        ids = np.fromiter(model.agents.all_ids(), dtype=np.int64)
        return model.random.permutation(ids).tolist()


class ByProperty(AbstractScheduler):
    """Activate agents in ascending order of a property.

    Parameters
    ----------
    key : str | Callable[[Agent], Any]
        A property name or a function of an agent returning a sortable value.
    """

    def __init__(self, key: str | Callable[[Agent], Any]) -> None:
        if isinstance(key, str):
            self._key = lambda agent: getattr(agent, key)
            self._name = key
        elif callable(key):
            self._key = key
            self._name = callable_name(key)
        else:
            raise InvalidConfigError(
                f"ByProperty expects a property name or a function, got {key!r}"
            )

    def order(self, model: Model) -> list[int]:
        keyed = [(self._key(agent), agent.unique_id) for agent in model.agents]
        keyed.sort()
        return [agent_id for _, agent_id in keyed]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name!r})"


class CustomScheduler(AbstractScheduler):
    """Adapt a user function into a scheduler.

    Parameters
    ----------
    func : Callable[[Model], Iterable[int]]
        A function returning the ids to activate, in order.

    Raises
    ------
    InvalidConfigError
        From :meth:`order`, if the ids are not exactly the live ids.
    """

    def __init__(self, func: Callable[[Model], Iterable[int]]) -> None:
        self._func = func

    def order(self, model: Model) -> list[int]:
        ids = [int(agent_id) for agent_id in self._func(model)]
        live = model.agents.all_ids()
        if len(ids) != len(live) or set(ids) != set(live):
            raise InvalidConfigError(
                "A scheduler must return every live agent id exactly once"
            )
        return ids

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({callable_name(self._func)})"


_POLICIES: dict[str, type[AbstractScheduler]] = {
    "by_id": ByID,
    "fastest": Fastest,
    "randomly": Randomly,
}


def get_scheduler(policy: SchedulerLike | AbstractScheduler = None) -> AbstractScheduler:
    """Resolve a scheduling policy.

    Parameters
    ----------
    policy : AbstractScheduler | str | Callable | None, optional
        A scheduler instance, one of ``"by_id"``, ``"fastest"`` or
        ``"randomly"``, a function ``func(model) -> Iterable[int]``, or None
        for the default ByID policy.

    Returns
    -------
    AbstractScheduler

    Raises
    ------
    InvalidConfigError
        If the policy is not recognized.
    """
    if policy is None:
        return ByID()
    if isinstance(policy, AbstractScheduler):
        return policy
    if isinstance(policy, str):
        try:
            return _POLICIES[policy]()
        except KeyError:
            raise InvalidConfigError(
                f"Unknown scheduler policy {policy!r}, expected one of {list(_POLICIES)}"
            ) from None
    if isinstance(policy, type) and issubclass(policy, AbstractScheduler):
        return policy()
    if callable(policy):
        return CustomScheduler(policy)
    raise InvalidConfigError(f"Invalid scheduler policy: {policy!r}")
