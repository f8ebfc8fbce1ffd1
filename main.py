"""
contentgraph maintenance entry point

Validates (and repairs) the graph invariants of every stored content.

Run with: python main.py [config.yaml]
"""

import asyncio
import sys

from contentgraph.config import Config
from contentgraph.models.content import Content
from contentgraph.services.content_graph import ContentGraph
from contentgraph.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

PAGE_SIZE = 200


async def repair_all(config: Config) -> dict:
    """Check and repair every content, one page at a time."""
    graph = ContentGraph.from_config(config)
    await graph.initialize()

    totals = {"validated": 0, "consistent": 0, "repaired": 0, "failed": 0}
    try:
        offset = 0
        while True:
            page = await graph.store.query(
                Content, order_by="created_at", descending=False, limit=PAGE_SIZE, offset=offset
            )
            if not page:
                break
            results = await graph.integrity.check_and_repair_batch([c.id for c in page])
            for key, value in results.items():
                totals[key] += value
            offset += PAGE_SIZE

        logger.info(f"Integrity pass finished: {totals}")
        logger.info(f"Graph statistics: {await graph.get_statistics()}")
    finally:
        await graph.close()

    return totals


if __name__ == "__main__":
    config = Config.from_env_or_yaml(yaml_path=sys.argv[1] if len(sys.argv) > 1 else None)

    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    totals = asyncio.run(repair_all(config))
    sys.exit(1 if totals["failed"] else 0)
