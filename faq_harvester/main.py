"""
Main orchestrator for the FAQ harvester.

Runs every registered adapter in order, then hands the combined entities
to the aggregator. One RunContext is created per run and passed to every
adapter, so all records of a run share the same timestamp.
"""

from typing import Iterable, Optional

from .adapters import ADAPTERS, BaseAdapter
from .aggregator import DatasetWriter, aggregate
from .config import HarvesterConfig
from .loader import DocumentLoader
from .logger import get_module_logger
from .schemas import FAQEntity, RunContext

logger = get_module_logger("main")


class FAQHarvester:
    """
    Coordinates the harvesting run.

    1. Adapters: load pages and extract entities, one source after another
    2. Aggregator: merge the entity lists in registry order
    3. DatasetWriter: rotate old answers, write the new dataset
    """

    def __init__(
        self,
        config: Optional[HarvesterConfig] = None,
        adapters: Optional[Iterable[BaseAdapter]] = None,
        loader: Optional[DocumentLoader] = None,
    ):
        self.config = config or HarvesterConfig()
        self.adapters = list(ADAPTERS if adapters is None else adapters)
        self.loader = loader or DocumentLoader(self.config)
        self.writer = DatasetWriter(self.config.output_dir)

        logger.info(f"FAQHarvester initialized with {len(self.adapters)} adapters")

    def harvest(self, context: Optional[RunContext] = None) -> list[list[FAQEntity]]:
        """Run all adapters; returns one entity list per adapter, in order."""
        context = context or RunContext()
        logger.info(f"Starting harvest at {context.captured_at}")

        results = []
        for adapter in self.adapters:
            entities = adapter.harvest(self.loader, context, self.config)
            logger.info(f"{adapter.source}: {len(entities)} entities")
            results.append(entities)
        return results

    def run(self, context: Optional[RunContext] = None, write: bool = True) -> tuple[list[dict], list[dict]]:
        """
        Harvest, aggregate and (unless write=False) write the dataset.

        Returns:
            (full records, index records)
        """
        records, index_records = aggregate(self.harvest(context))

        if write:
            self.writer.write(records, index_records)

        logger.info(f"Complete: {len(records)} records")
        return records, index_records
