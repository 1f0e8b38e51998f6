from .data_models import ContentMetadata, ContentPage
from .lineage import ContentTree, filter_descendants, resolve_content_url, with_content_url

__all__ = [
    "ContentMetadata",
    "ContentPage",
    "ContentTree",
    "filter_descendants",
    "resolve_content_url",
    "with_content_url",
]
