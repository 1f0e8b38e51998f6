import asyncio
import logging

from content_pipeline import ClientConfig, ContentPipelineClient, GraphBuilder, StructuredDocument

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("pipeline")

GRAPH_SPEC = """
name: 'knowledge_base'
extraction_policies:
  - extractor: 'tensorlake/chunk-extractor'
    name: 'chunker'
    input_params:
      chunk_size: 512
  - extractor: 'tensorlake/minilm-l6'
    name: 'embedder'
    content_source: 'chunker'
"""


async def main():
    """Register a graph, ingest two documents and print the derived chunks."""
    config = ClientConfig.from_env()
    logger.info(f"Configuration: {config.to_dict()}")

    graph = GraphBuilder.from_spec(GRAPH_SPEC)

    async with ContentPipelineClient(config) as client:
        indexes = await client.create_extraction_graph(graph)
        logger.info(f"Indexes: {indexes}")

        content_ids = await client.add_documents(graph.name, [
            StructuredDocument(text="Indexes are keyed by graph and policy.", labels={"topic": "indexes"}),
            StructuredDocument(text="Tasks bind one content node to one policy.", labels={"topic": "tasks"}),
        ])

        await client.wait_for_completion(content_ids, timeout=120)

        for content_id in content_ids:
            chunks = await client.get_extracted_content(content_id, graph.name, "chunker")
            logger.info(f"{content_id}: {len(chunks)} chunk(s)")
            for chunk in chunks:
                logger.info(f"    {chunk.id} -> {chunk.content_url}")

        if indexes:
            results = await client.search_index(indexes[0], "what is a task?", 3)
            for result in results:
                logger.info(f"{result.confidence_score:.3f} {result.text[:80]}")


if __name__ == "__main__":
    asyncio.run(main())
