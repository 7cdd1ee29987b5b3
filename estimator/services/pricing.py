"""
Pricing engine.

Stateless cost computation: a task costs
``size_factor * complexity_factors[complexity] * base_rate`` and a project
costs the sum of its tasks, added in sequence order.
"""
from dataclasses import replace
from decimal import Decimal
from typing import Iterable

from estimator.exceptions import InvalidSizeFactorError
from estimator.models import Complexity, EstimatorSettings, Project, Task, utcnow


def cost_of(task: Task, settings: EstimatorSettings) -> Decimal:
    """
    Compute the cost of a single task.

    Args:
        task: Task to price.
        settings: Settings snapshot providing base rate and multipliers.

    Returns:
        The task cost.

    Raises:
        InvalidComplexityError: If the complexity is not a recognized level.
        InvalidSizeFactorError: If the size factor is negative.
    """
    complexity = Complexity.parse(task.complexity)
    if task.size_factor < 0:
        raise InvalidSizeFactorError(task.size_factor)
    return task.size_factor * settings.complexity_factors[complexity] * settings.base_rate


def project_total(tasks: Iterable[Task], settings: EstimatorSettings) -> Decimal:
    """Sum task costs left to right."""
    total = Decimal("0")
    for task in tasks:
        total = total + cost_of(task, settings)
    return total


def recalculate(project: Project, settings: EstimatorSettings) -> Project:
    """
    Return a copy of ``project`` with every derived cost recomputed.

    The input project and its tasks are not modified.
    """
    tasks = [replace(task, calculated_cost=cost_of(task, settings)) for task in project.tasks]

    total = Decimal("0")
    for task in tasks:
        total = total + task.calculated_cost

    return replace(project, tasks=tasks, total_cost=total, updated_at=utcnow())
