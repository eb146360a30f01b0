"""Utility functions for agentgrid."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


def copydoc(fromfunc, sep="\n"):
    """Copy the docstring of function or class.

    https://stackoverflow.com/a/13743316
    """

    def _decorator(func):
        sourcedoc = fromfunc.__doc__
        if func.__doc__ is None:
            func.__doc__ = sourcedoc
        else:
            func.__doc__ = sep.join([sourcedoc, func.__doc__])
        return func

    return _decorator


def callable_name(func: Callable[..., Any]) -> str:
    """Return a column-friendly name for a function.

    Lambdas and partials have no useful ``__name__``; they fall back to the
    class name of the callable.
    """
    name = getattr(func, "__name__", None)
    if not name or name == "<lambda>":
        name = getattr(getattr(func, "func", None), "__name__", None)
    if not name or name == "<lambda>":
        name = type(func).__name__
    return name
