"""
Completion waiting for ingested content.

The waiter is a caller-driven polling loop: it asks a probe whether the work
for one content id has resolved, sleeps between polls, and moves on to the
next id only once the current one is done. The first failure or transport
error aborts the remaining ids.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..content.data_models import ContentMetadata
from ..errors import CompletionTimeoutError, TaskFailedError
from ..graph.data_models import INGESTION_SOURCE, ExtractionGraph, ExtractionPolicy
from ..query.filters import ContentFilter, TaskFilter
from .data_models import Task, TaskOutcome, TaskOutcomeLedger

logger = logging.getLogger(__name__)


class CompletionState(BaseModel):
    """What one poll learned about a content id."""
    resolved: bool
    tasks: List[Task] = Field(default_factory=list)

    @property
    def failures(self) -> List[Task]:
        return [task for task in self.tasks if task.outcome is TaskOutcome.FAILURE]


class CompletionProbe(ABC):
    """Answers whether extraction work for a content id has resolved."""

    @abstractmethod
    async def poll(self, content_id: str) -> CompletionState:
        pass


class WaitEndpointProbe(CompletionProbe):
    """Uses the service's long-poll wait endpoint; one call blocks until done."""

    def __init__(self, client):
        self.client = client

    async def poll(self, content_id: str) -> CompletionState:
        await self.client.transport.request("GET", f"content/{content_id}/wait")
        return CompletionState(resolved=True)


class TaskPollingProbe(CompletionProbe):
    """
    Follows an ingested content id down an extraction graph by listing tasks.

    Policies that read from ingestion are polled against the ingested id.
    Once every task of a policy has succeeded for a node, the content that
    policy derived from the node is listed and its consumers are polled
    against each derived id. A stage whose label filter matches a node but
    which has no tasks yet counts as pending, so an id resolves only when
    every reachable stage has reported tasks and all of them are terminal.
    """

    def __init__(self, client, graph: ExtractionGraph):
        self.client = client
        self.graph = graph
        self.ledger = TaskOutcomeLedger()

    async def poll(self, content_id: str) -> CompletionState:
        root = await self.client.get_content_metadata(content_id)
        tasks: List[Task] = []
        pending_stages = 0

        frontier = [(root, policy) for policy in self.graph.children_of(INGESTION_SOURCE)]
        while frontier:
            node, policy = frontier.pop(0)
            if not _labels_match(policy, node):
                continue

            page = await self.client.list_tasks(self.graph.name, policy.name, TaskFilter(content_id=node.id))
            observed = self.ledger.observe_all(page.tasks)
            tasks.extend(observed)
            if not observed or any(not task.is_terminal for task in observed):
                pending_stages += 1
                continue

            consumers = self.graph.children_of(policy.name)
            if not consumers or any(task.outcome is TaskOutcome.FAILURE for task in observed):
                continue
            derived = await self.client.list_content(ContentFilter(
                extraction_graph=self.graph.name,
                source=policy.name,
                parent_id=node.id,
            ))
            for child in derived.content_list:
                if not child.tombstoned:
                    frontier.extend((child, consumer) for consumer in consumers)

        terminal = sum(1 for task in tasks if task.is_terminal)
        logger.debug(
            f"Content {content_id}: {terminal}/{len(tasks)} tasks terminal, {pending_stages} stage(s) pending"
        )
        return CompletionState(resolved=pending_stages == 0, tasks=tasks)


def _labels_match(policy: ExtractionPolicy, node: ContentMetadata) -> bool:
    if not policy.label_filter:
        return True
    return all(node.labels.get(key) == value for key, value in policy.label_filter.items())


class CompletionWaiter:
    """Blocks until extraction for a set of content ids has resolved."""

    def __init__(self, probe: CompletionProbe, poll_interval: float = 1.0):
        self.probe = probe
        self.poll_interval = poll_interval

    async def wait(self, content_ids: Union[str, Sequence[str]], timeout: Optional[float] = None) -> None:
        """
        Wait for every content id in turn.

        Args:
            content_ids: One id or a sequence of ids
            timeout: Overall deadline in seconds; None waits without bound

        Raises:
            TaskFailedError: When an id resolves with a failed task
            TransportError: When a poll fails
            CompletionTimeoutError: When the deadline passes first
        """
        ids = [content_ids] if isinstance(content_ids, str) else list(content_ids)
        logger.info(f"Waiting for extraction to complete for content ids: {','.join(ids)}")

        if timeout is None:
            await self._wait_all(ids)
            return

        try:
            await asyncio.wait_for(self._wait_all(ids), timeout)
        except asyncio.TimeoutError:
            raise CompletionTimeoutError(ids, timeout) from None

    async def _wait_all(self, ids: List[str]) -> None:
        for content_id in ids:
            await self.wait_one(content_id)

    async def wait_one(self, content_id: str) -> CompletionState:
        polls = 0
        while True:
            polls += 1
            try:
                state = await self.probe.poll(content_id)
            except Exception as e:
                logger.error(f"Error waiting for extraction of content id {content_id}: {e}")
                raise

            if state.resolved:
                break
            await asyncio.sleep(self.poll_interval)

        failures = state.failures
        if failures:
            first = failures[0]
            logger.error(f"Extraction failed for content id {content_id}: task {first.id}")
            raise TaskFailedError(content_id, first.id, first.policy_id)

        logger.info(f"Extraction completed for content id {content_id} after {polls} poll(s)")
        return state
