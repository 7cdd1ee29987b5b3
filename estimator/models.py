"""
Domain model for the Cost Estimator.

Projects own an ordered sequence of tasks. Every task is priced from the
global estimator settings; ``calculated_cost`` and ``total_cost`` are derived
values written only by the pricing engine.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from estimator.exceptions import InvalidComplexityError, ValidationError


class Complexity(str, Enum):
    """Complexity tiers, each mapped to a multiplier in the settings."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "veryHigh"

    @classmethod
    def parse(cls, value: Any) -> "Complexity":
        """Return the matching level or raise InvalidComplexityError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidComplexityError(value)


class LLMProvider(str, Enum):
    """Supported task generation providers."""
    CLAUDE = "claude"
    OPENAI = "openai"


DEFAULT_BASE_RATE = Decimal("100")
DEFAULT_COMPLEXITY_FACTORS = {
    Complexity.LOW: Decimal("1"),
    Complexity.MEDIUM: Decimal("2"),
    Complexity.HIGH: Decimal("4"),
    Complexity.VERY_HIGH: Decimal("8"),
}
DEFAULT_LLM_MODEL = "claude-3-5-sonnet-20241022"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def to_decimal(value: Any, field_name: str) -> Decimal:
    """
    Convert caller input to Decimal.

    Floats go through ``str`` so 0.1 stays 0.1. Booleans, NaN and
    infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(
            f"{field_name} must be a number",
            errors=[{"field": field_name, "message": "must be a number"}],
        )
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(
            f"{field_name} must be a number",
            errors=[{"field": field_name, "message": "must be a number"}],
        )
    if not result.is_finite():
        raise ValidationError(
            f"{field_name} must be finite",
            errors=[{"field": field_name, "message": "must be finite"}],
        )
    return result


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Settings
# =============================================================================

@dataclass
class LLMConfig:
    """Provider, credentials and model for task generation."""
    provider: LLMProvider = LLMProvider.CLAUDE
    api_key: str = ""
    model: str = DEFAULT_LLM_MODEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value,
            "api_key": self.api_key,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLMConfig":
        provider = data.get("provider", LLMProvider.CLAUDE)
        try:
            provider = LLMProvider(provider)
        except ValueError:
            raise ValidationError(
                f"Unknown LLM provider: {provider!r}",
                errors=[{"field": "llm.provider", "message": "must be claude or openai"}],
            )
        return cls(
            provider=provider,
            api_key=data.get("api_key") or "",
            model=data.get("model") or DEFAULT_LLM_MODEL,
        )


@dataclass
class EstimatorSettings:
    """Global pricing configuration shared by every project."""
    base_rate: Decimal = DEFAULT_BASE_RATE
    complexity_factors: Dict[Complexity, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_COMPLEXITY_FACTORS)
    )
    llm: LLMConfig = field(default_factory=LLMConfig)

    def validate(self) -> "EstimatorSettings":
        """Check the settings invariants, returning self."""
        if self.base_rate < 0:
            raise ValidationError(
                "Base rate must be non-negative",
                errors=[{"field": "base_rate", "message": "must be >= 0"}],
            )
        missing = [c.value for c in Complexity if c not in self.complexity_factors]
        if missing:
            raise ValidationError(
                "Complexity factors are incomplete",
                errors=[{"field": "complexity_factors", "message": f"missing {', '.join(missing)}"}],
            )
        for level, factor in self.complexity_factors.items():
            if factor < 0:
                raise ValidationError(
                    f"Complexity factor for {level.value} must be non-negative",
                    errors=[{"field": f"complexity_factors.{level.value}", "message": "must be >= 0"}],
                )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_rate": str(self.base_rate),
            "complexity_factors": {
                level.value: str(self.complexity_factors[level]) for level in Complexity
            },
            "llm": self.llm.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimatorSettings":
        """Build settings, falling back to defaults for absent fields."""
        defaults = cls()
        base_rate = defaults.base_rate
        if data.get("base_rate") is not None:
            base_rate = to_decimal(data["base_rate"], "base_rate")

        factors = defaults.complexity_factors
        if data.get("complexity_factors") is not None:
            factors = {
                Complexity.parse(level): to_decimal(value, f"complexity_factors.{level}")
                for level, value in data["complexity_factors"].items()
            }

        llm = defaults.llm
        if data.get("llm") is not None:
            llm = LLMConfig.from_dict(data["llm"])

        return cls(base_rate=base_rate, complexity_factors=factors, llm=llm).validate()


# =============================================================================
# Projects and tasks
# =============================================================================

@dataclass
class Task:
    """A priced unit of work inside a project."""
    name: str
    complexity: Complexity
    size_factor: Decimal
    description: str = ""
    calculated_cost: Decimal = Decimal("0")
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "complexity": getattr(self.complexity, "value", self.complexity),
            "size_factor": str(self.size_factor),
            "calculated_cost": str(self.calculated_cost),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        # Unknown levels are kept as stored; pricing rejects them.
        complexity = data["complexity"]
        try:
            complexity = Complexity(complexity)
        except ValueError:
            pass
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            complexity=complexity,
            size_factor=to_decimal(data["size_factor"], "size_factor"),
            calculated_cost=to_decimal(data.get("calculated_cost", "0"), "calculated_cost"),
        )


@dataclass
class TaskDraft:
    """An LLM-proposed task before it is assigned an id and priced."""
    name: str
    description: str
    complexity: Complexity
    size_factor: Decimal


@dataclass
class Project:
    """A named estimate holding an ordered list of tasks."""
    name: str
    description: str
    tasks: List[Task] = field(default_factory=list)
    total_cost: Decimal = Decimal("0")
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.created_at

    def find_task(self, task_id: str) -> Optional[int]:
        """Index of the task with ``task_id``, or None."""
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tasks": [task.to_dict() for task in self.tasks],
            "total_cost": str(self.total_cost),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            tasks=[Task.from_dict(task) for task in data.get("tasks", [])],
            total_cost=to_decimal(data.get("total_cost", "0"), "total_cost"),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data.get("updated_at") or data["created_at"]),
        )


@dataclass
class RecalculationSummary:
    """Outcome of a settings-triggered sweep over all projects."""
    recalculated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
