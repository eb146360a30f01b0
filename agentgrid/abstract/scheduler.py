"""
Abstract base class for agent schedulers in agentgrid.

A scheduler turns the current set of live agents into the order in which
they are activated during one step. Schedulers only decide activation
order; agents must not depend on them for anything else.

Classes:
    AbstractScheduler(ABC):
        Interface for activation-order policies. Subclasses implement
        ``order(model)``; instances are also callable.

Usage:
    from agentgrid.abstract.scheduler import AbstractScheduler

    class Reversed(AbstractScheduler):
        def order(self, model):
            return sorted(model.agents.all_ids(), reverse=True)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentgrid.concrete.model import Model


class AbstractScheduler(ABC):
    """Interface for activation-order policies."""

    @abstractmethod
    def order(self, model: Model) -> list[int]:
        """Return the ids to activate in this step, in activation order.

        The result must contain every live id exactly once. It is computed
        fresh on every call.

        Parameters
        ----------
        model : Model
            The model whose agents are scheduled.

        Returns
        -------
        list[int]
        """
        ...

    def __call__(self, model: Model) -> list[int]:
        return self.order(model)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
