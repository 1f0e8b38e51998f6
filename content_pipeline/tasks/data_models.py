"""
Task model: one unit of extraction work binding a content node to a policy.

Outcomes move from PENDING to SUCCESS or FAILURE and never back.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class TaskOutcome(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_wire(cls, value: Any) -> "TaskOutcome":
        if isinstance(value, TaskOutcome):
            return value
        normalized = str(value or "").strip().lower()
        if normalized in ("success", "succeeded"):
            return cls.SUCCESS
        if normalized in ("failed", "failure"):
            return cls.FAILURE
        # "unknown", "pending" and anything unrecognised are still in flight
        return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self is not TaskOutcome.PENDING

    def can_transition(self, target: "TaskOutcome") -> bool:
        if self is TaskOutcome.PENDING:
            return True
        return target is self


class Task(BaseModel):
    """The binding of one content node to one extraction policy."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    policy_id: str = Field(validation_alias=AliasChoices("policy_id", "extraction_policy_id"))
    content_id: str = ""
    graph_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("graph_name", "extraction_graph"))
    extractor: Optional[str] = None
    namespace: Optional[str] = None
    input_params: Dict[str, Any] = Field(default_factory=dict)
    outcome: TaskOutcome = TaskOutcome.PENDING
    index_tables: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _content_id_from_metadata(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("content_id"):
            metadata = data.get("content_metadata") or {}
            if metadata.get("id"):
                data = {**data, "content_id": metadata["id"]}
        return data

    @field_validator("outcome", mode="before")
    @classmethod
    def _parse_outcome(cls, value: Any) -> TaskOutcome:
        return TaskOutcome.from_wire(value)

    @field_validator("input_params", mode="before")
    @classmethod
    def _params_or_empty(cls, value: Any) -> Any:
        return value or {}

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal


class TaskPage(BaseModel):
    """One page of a task listing."""
    tasks: List[Task] = Field(default_factory=list)
    total: Optional[int] = None

    @property
    def last_id(self) -> Optional[str]:
        """Cursor to pass as start_id for the next page, as returned by the service."""
        return self.tasks[-1].id if self.tasks else None


class TaskOutcomeLedger:
    """Remembers observed outcomes so later observations never regress."""

    def __init__(self):
        self._outcomes: Dict[str, TaskOutcome] = {}

    def __len__(self) -> int:
        return len(self._outcomes)

    def outcome(self, task_id: str) -> Optional[TaskOutcome]:
        return self._outcomes.get(task_id)

    def observe(self, task: Task) -> Task:
        """
        Record an observation of a task.

        Returns:
            The task with the effective outcome: a terminal outcome already
            seen wins over a later PENDING report.
        """
        known = self._outcomes.get(task.id)
        if known is None or known.can_transition(task.outcome):
            self._outcomes[task.id] = task.outcome
            return task

        logger.warning(
            f"Ignoring outcome '{task.outcome.value}' for task {task.id}, already observed '{known.value}'"
        )
        return task.model_copy(update={"outcome": known})

    def observe_all(self, tasks: List[Task]) -> List[Task]:
        return [self.observe(task) for task in tasks]
