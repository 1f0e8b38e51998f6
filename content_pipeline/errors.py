"""
Exception hierarchy for the content pipeline client.

Graph validation errors are raised locally before anything reaches the
network. Remote failures surface as TransportError and are never retried here.
"""

from typing import List, Optional, Sequence


class ContentPipelineError(Exception):
    """Base class for all errors raised by this package."""


class GraphValidationError(ContentPipelineError):
    """An extraction graph failed local construction or validation."""


class MalformedSpecError(GraphValidationError):
    """A graph specification could not be parsed or lacks required fields."""


class CyclicGraphError(GraphValidationError):
    """The content_source edges of a graph form a cycle."""

    def __init__(self, graph_name: str, cycle: Sequence[str]):
        self.graph_name = graph_name
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(f"Extraction graph '{graph_name}' has a content_source cycle: {path}")


class DuplicatePolicyNameError(GraphValidationError):
    """Two policies in one graph share a name."""

    def __init__(self, graph_name: str, policy_name: str):
        self.graph_name = graph_name
        self.policy_name = policy_name
        super().__init__(f"Extraction graph '{graph_name}' defines policy '{policy_name}' more than once")


class DanglingSourceReferenceError(GraphValidationError):
    """A policy's content_source names a policy that is not in the graph."""

    def __init__(self, graph_name: str, policy_name: str, content_source: str):
        self.graph_name = graph_name
        self.policy_name = policy_name
        self.content_source = content_source
        super().__init__(
            f"Policy '{policy_name}' in extraction graph '{graph_name}' "
            f"reads from unknown content source '{content_source}'"
        )


class TransportError(ContentPipelineError):
    """A remote call failed: connection error or non-2xx response."""

    def __init__(self, method: str, url: str, status_code: Optional[int] = None, detail: str = ""):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.detail = detail
        status = f" ({status_code})" if status_code is not None else ""
        message = f"{method} {url} failed{status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class IncompleteUploadError(ContentPipelineError):
    """The service acknowledged an upload but returned no content id."""


class UnsupportedEnvironmentError(ContentPipelineError):
    """An operation needs a capability the current environment does not have."""


class InvalidLabelFilterError(ContentPipelineError, ValueError):
    """A label filter cannot be encoded unambiguously as key:value."""


class LineageIntegrityError(ContentPipelineError):
    """Content nodes do not form a consistent parent/root forest."""


class TaskFailedError(ContentPipelineError):
    """Extraction work for a content id finished with at least one failed task."""

    def __init__(self, content_id: str, task_id: Optional[str] = None, policy_id: Optional[str] = None):
        self.content_id = content_id
        self.task_id = task_id
        self.policy_id = policy_id
        if task_id:
            message = f"Task '{task_id}' (policy '{policy_id}') failed for content '{content_id}'"
        else:
            message = f"Extraction failed for content '{content_id}'"
        super().__init__(message)


class CompletionTimeoutError(ContentPipelineError):
    """Waiting for extraction to complete exceeded the caller's deadline."""

    def __init__(self, content_ids: Sequence[str], timeout: float):
        self.content_ids = list(content_ids)
        self.timeout = timeout
        super().__init__(
            f"Extraction for {', '.join(self.content_ids)} did not complete within {timeout}s"
        )
