from .data_models import Task, TaskOutcome, TaskOutcomeLedger, TaskPage
from .waiter import (
    CompletionProbe,
    CompletionState,
    CompletionWaiter,
    TaskPollingProbe,
    WaitEndpointProbe,
)

__all__ = [
    "Task",
    "TaskOutcome",
    "TaskOutcomeLedger",
    "TaskPage",
    "CompletionProbe",
    "CompletionState",
    "CompletionWaiter",
    "TaskPollingProbe",
    "WaitEndpointProbe",
]
