"""
Content lineage resolution.

The service returns content nodes as flat lists in its own order. These
helpers filter them by graph and producing policy, rebuild the parent/child
forest, and derive download locations, all without I/O.
"""

import logging
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from ..errors import LineageIntegrityError
from .data_models import ContentMetadata

logger = logging.getLogger(__name__)


def filter_descendants(nodes: Iterable[ContentMetadata],
                       graph_name: str,
                       policy_name: str,
                       root_id: Optional[str] = None) -> List[ContentMetadata]:
    """
    Select content produced by one policy of one graph.

    Args:
        nodes: Content nodes in server order
        graph_name: Graph the nodes must belong to
        policy_name: Policy that must have produced the nodes
        root_id: Ingested content the nodes descend from, if known

    Returns:
        Matching nodes in their original order; empty when nothing matches
    """
    selected = []
    for node in nodes:
        if graph_name not in node.member_graphs or node.source_policy != policy_name:
            continue
        if root_id is not None:
            if node.root_content_id is None:
                node = node.model_copy(update={"root_content_id": root_id})
            elif node.root_content_id != root_id:
                continue
        selected.append(node)
    return selected


def resolve_content_url(node: ContentMetadata, service_url: str, namespace: str) -> str:
    """Return the node's storage URL if it is remote, else the service download URL."""
    if urlparse(node.storage_url).scheme in ("http", "https"):
        return node.storage_url
    return f"{service_url.rstrip('/')}/namespaces/{namespace}/content/{node.id}/download"


def with_content_url(node: ContentMetadata, service_url: str, namespace: str) -> ContentMetadata:
    return node.model_copy(update={"content_url": resolve_content_url(node, service_url, namespace)})


class ContentTree:
    """Parent/child view over a flat collection of content nodes."""

    def __init__(self, nodes: Iterable[ContentMetadata]):
        self._nodes: Dict[str, ContentMetadata] = {}
        self._children: Dict[str, List[str]] = {}
        for node in nodes:
            self._nodes[node.id] = node
        for node in self._nodes.values():
            if node.parent_id is not None:
                self._children.setdefault(node.parent_id, []).append(node.id)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, content_id: str) -> bool:
        return content_id in self._nodes

    def get(self, content_id: str) -> ContentMetadata:
        try:
            return self._nodes[content_id]
        except KeyError:
            raise LineageIntegrityError(f"Content '{content_id}' is not in the tree") from None

    def parent(self, content_id: str) -> Optional[ContentMetadata]:
        parent_id = self.get(content_id).parent_id
        return self.get(parent_id) if parent_id is not None else None

    def children(self, content_id: str) -> List[ContentMetadata]:
        return [self._nodes[child] for child in self._children.get(content_id, [])]

    def ancestors(self, content_id: str) -> List[ContentMetadata]:
        """Ancestors from the immediate parent up to the root."""
        chain = []
        seen = {content_id}
        node = self.get(content_id)
        while node.parent_id is not None:
            if node.parent_id in seen:
                raise LineageIntegrityError(f"Parent links of content '{content_id}' form a cycle")
            seen.add(node.parent_id)
            node = self.get(node.parent_id)
            chain.append(node)
        return chain

    def root_of(self, content_id: str) -> ContentMetadata:
        ancestors = self.ancestors(content_id)
        return ancestors[-1] if ancestors else self.get(content_id)

    def descendants(self, content_id: str) -> List[ContentMetadata]:
        """All nodes derived from ``content_id``, breadth first."""
        result = []
        queue = list(self._children.get(content_id, []))
        visited = set()
        while queue:
            child = queue.pop(0)
            if child in visited:
                continue
            visited.add(child)
            result.append(self._nodes[child])
            queue.extend(self._children.get(child, []))
        return result

    def roots(self) -> List[ContentMetadata]:
        return [node for node in self._nodes.values() if node.is_root]

    def live(self) -> List[ContentMetadata]:
        """Nodes that have not been tombstoned."""
        return [node for node in self._nodes.values() if not node.tombstoned]

    def verify(self) -> None:
        """
        Check that every node reaches a root through known parents and that
        declared root ids agree with the walked root.

        Raises:
            LineageIntegrityError: On the first inconsistency found
        """
        for node in self._nodes.values():
            root = self.root_of(node.id)
            if node.root_content_id is not None and not node.is_root and node.root_content_id != root.id:
                raise LineageIntegrityError(
                    f"Content '{node.id}' declares root '{node.root_content_id}' but descends from '{root.id}'"
                )
        logger.debug(f"Verified lineage of {len(self._nodes)} content nodes")
