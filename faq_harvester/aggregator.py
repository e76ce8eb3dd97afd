"""
Aggregation of all adapters' entities into the JSON dataset.

Output layout under the configured directory:
  faq.json                  every record {q, r, s, u, m, i}
  faq-questions.json        index records {q, i, s}, same order
  answers/<identity>.json   one record per entity
  answers/outdated/         the previous run's per-entity files

Nothing is written until every adapter has finished, so an interrupted
run leaves the previous dataset untouched.
"""

import json
from pathlib import Path
from typing import Iterable, Union

from .exceptions import OutputError
from .logger import get_module_logger
from .schemas import FAQEntity, FAQIndexEntry

logger = get_module_logger("aggregator")

FAQ_FILE = "faq.json"
QUESTIONS_FILE = "faq-questions.json"
ANSWERS_DIR = "answers"
OUTDATED_DIR = "outdated"


def aggregate(entity_sequences: Iterable[Iterable[FAQEntity]]) -> tuple[list[dict], list[dict]]:
    """
    Concatenate entity sequences in the given order.

    Returns:
        (full records, index records); identity is attached to both
    """
    entities = [entity for sequence in entity_sequences for entity in sequence]
    records = [entity.to_record() for entity in entities]
    index_records = [FAQIndexEntry.from_entity(entity).to_record() for entity in entities]
    return records, index_records


def _dump(data, path: Path) -> None:
    # ensure_ascii=False keeps accented French text readable in the files
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class DatasetWriter:
    """Writes the dataset and rotates per-entity files into outdated/."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.answers_dir = self.output_dir / ANSWERS_DIR
        self.outdated_dir = self.answers_dir / OUTDATED_DIR

    def rotate(self) -> int:
        """Move answers/*.json into answers/outdated/. Returns the count moved."""
        moved = 0
        for answer_file in sorted(self.answers_dir.glob("*.json")):
            answer_file.replace(self.outdated_dir / answer_file.name)
            moved += 1
        logger.info(f"Moved {moved} previous answer files to {self.outdated_dir}")
        return moved

    def write(self, records: list[dict], index_records: list[dict]) -> Path:
        """
        Rotate old answers and write the new dataset.

        Raises:
            OutputError: if any directory or file operation fails
        """
        try:
            self.outdated_dir.mkdir(parents=True, exist_ok=True)
            self.rotate()

            _dump(records, self.output_dir / FAQ_FILE)
            _dump(index_records, self.output_dir / QUESTIONS_FILE)
            for record in records:
                _dump(record, self.answers_dir / f"{record['i']}.json")

        except OSError as e:
            raise OutputError(f"Cannot write dataset: {e}", path=str(self.output_dir)) from e

        logger.info(f"Wrote {len(records)} FAQ records to {self.output_dir}")
        return self.output_dir
