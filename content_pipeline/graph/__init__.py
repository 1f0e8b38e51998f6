"""
Extraction graph model: policies, graphs, and the builder that parses,
validates and serializes them.
"""

from .data_models import INGESTION_SOURCE, ExtractionGraph, ExtractionPolicy, GraphSnapshot, Namespace
from .builder import GraphBuilder, topological_order

__all__ = [
    "INGESTION_SOURCE",
    "ExtractionGraph",
    "ExtractionPolicy",
    "GraphSnapshot",
    "Namespace",
    "GraphBuilder",
    "topological_order",
]
