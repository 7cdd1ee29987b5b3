"""
LLM-assisted task generation.

Turns a free-text project description into task drafts. The generator never
prices or persists anything; drafts are appended through the repository's
``add_tasks`` path and priced like manually entered tasks.
"""
import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, List, Optional, Tuple, Union

import structlog

from estimator.exceptions import ConfigurationError, NoTasksGeneratedError, ValidationError
from estimator.models import Complexity, LLMConfig, LLMProvider, Project, Task, TaskDraft, to_decimal
from estimator.services.llm_providers import LLMClient, get_llm_client
from estimator.services.repository import ProjectRepository

logger = structlog.get_logger(__name__)

DEFAULT_TASK_NAME = "Untitled Task"
DEFAULT_COMPLEXITY = Complexity.MEDIUM
DEFAULT_SIZE_FACTOR = Decimal("1")

PROMPT_TEMPLATE = """You are a project management expert. Based on the following project description, generate a list of tasks/milestones.

Project: {project_name}
Description: {description}

Generate 5-10 tasks with the following structure. Return ONLY a valid JSON array, nothing else:

[
  {{
    "name": "Task name",
    "description": "Detailed description",
    "complexity": "low" | "medium" | "high" | "veryHigh",
    "sizeFactor": number (estimated hours or size units)
  }}
]

Complexity levels:
- low: Simple, straightforward tasks
- medium: Moderate complexity
- high: Complex tasks requiring significant effort
- veryHigh: Very complex, critical tasks

Size factor should be the estimated hours or relative size units."""


@dataclass
class ParsedTasks:
    """At least one draft was recovered from the response."""
    drafts: List[TaskDraft] = field(default_factory=list)


@dataclass
class NoTasksParsed:
    """The response held no usable JSON array."""
    reason: str


TaskParseResult = Union[ParsedTasks, NoTasksParsed]


def build_prompt(description: str, project_name: Optional[str] = None) -> str:
    return PROMPT_TEMPLATE.format(
        project_name=project_name or "Untitled Project",
        description=description,
    )


def _first_json_array(text: str) -> Optional[list]:
    """Return the first substring starting at ``[`` that decodes to a list."""
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    return None


def _draft_from_item(item: dict) -> TaskDraft:
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        name = DEFAULT_TASK_NAME

    description = item.get("description")
    if not isinstance(description, str):
        description = ""

    # Unrecognized levels from the model fall back to medium.
    try:
        complexity = Complexity(item.get("complexity"))
    except ValueError:
        complexity = DEFAULT_COMPLEXITY

    size_factor = DEFAULT_SIZE_FACTOR
    raw_size = item.get("sizeFactor", item.get("size_factor"))
    if raw_size is not None:
        try:
            parsed = to_decimal(raw_size, "sizeFactor")
        except ValidationError:
            parsed = None
        if parsed is not None and parsed > 0:
            size_factor = parsed

    return TaskDraft(
        name=name.strip(),
        description=description,
        complexity=complexity,
        size_factor=size_factor,
    )


def parse_tasks_from_response(text: Any) -> TaskParseResult:
    """
    Extract task drafts from a raw model response.

    Surrounding prose is discarded. Missing or malformed fields are
    defaulted; elements that are not JSON objects are skipped. Never raises.
    """
    if not isinstance(text, str) or not text.strip():
        return NoTasksParsed(reason="empty response")

    items = _first_json_array(text)
    if items is None:
        return NoTasksParsed(reason="no JSON array found")

    drafts = [_draft_from_item(item) for item in items if isinstance(item, dict)]
    if not drafts:
        return NoTasksParsed(reason="JSON array contained no task objects")
    return ParsedTasks(drafts=drafts)


class TaskGenerator:
    """Proposes task drafts for a project description via an LLM."""

    def __init__(self, client_factory: Callable[[LLMProvider], LLMClient] = get_llm_client):
        self._client_factory = client_factory

    async def generate(
        self,
        description: str,
        llm: LLMConfig,
        project_name: Optional[str] = None,
    ) -> List[TaskDraft]:
        """
        Ask the configured provider for task drafts.

        Returns an empty list when nothing could be parsed; callers must
        treat that as a failure to generate.

        Raises:
            ConfigurationError: If no API key is configured.
            ProviderError: If the provider call fails.
        """
        if not llm.api_key:
            raise ConfigurationError(
                "LLM API key not configured. Please set it in settings.",
                details={"provider": llm.provider.value},
            )

        client = self._client_factory(llm.provider)
        raw_text = await client.complete(llm.api_key, llm.model, build_prompt(description, project_name))

        result = parse_tasks_from_response(raw_text)
        if isinstance(result, NoTasksParsed):
            logger.warning("task_generation_unparsed", provider=llm.provider.value, reason=result.reason)
            return []

        logger.info("task_generation_parsed", provider=llm.provider.value, count=len(result.drafts))
        return result.drafts


async def generate_project_tasks(
    repository: ProjectRepository,
    generator: TaskGenerator,
    project_id: str,
    description: str,
) -> Tuple[List[Task], Project]:
    """
    Generate tasks for a project and append them.

    All drafts are appended in a single write, so a failure leaves the
    project as it was.

    Raises:
        ProjectNotFoundError: If the project does not exist.
        ValidationError: If the description is empty.
        ConfigurationError: If no API key is configured.
        ProviderError: If the call fails.
        NoTasksGeneratedError: If the response yielded no tasks.
    """
    project = repository.get_project(project_id)
    if not description or not description.strip():
        raise ValidationError(
            "description is required",
            errors=[{"field": "description", "message": "must not be empty"}],
        )
    llm = repository.settings_store.get().llm

    drafts = await generator.generate(description, llm, project_name=project.name)
    if not drafts:
        raise NoTasksGeneratedError(llm.provider.value, reason="no tasks could be parsed")

    tasks, project = repository.add_tasks(project_id, drafts)

    logger.info(
        "tasks_generated",
        project_id=project_id,
        count=len(tasks),
        total_cost=str(project.total_cost),
    )
    return tasks, project
