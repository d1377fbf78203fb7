"""Fallback-to-default resolution shared by schedules and task settings."""

from collections.abc import Callable
from typing import TypeVar

BaseT = TypeVar("BaseT")
OverrideT = TypeVar("OverrideT")


def resolve_with_override(
    base: BaseT,
    override: OverrideT | None,
    apply: Callable[[BaseT, OverrideT], BaseT],
) -> BaseT:
    """Return the effective value of ``base`` once an optional override is applied.

    When no override row exists the base value is returned unchanged,
    otherwise ``apply(base, override)`` decides the effective value.

    Args:
        base: Default value (weekday schedule, task definition default)
        override: Date override or clinic config, if one exists
        apply: Combines base and override into the effective value

    Returns:
        Effective value
    """
    if override is None:
        return base
    return apply(base, override)
