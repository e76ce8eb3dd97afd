"""
Pydantic schemas shared by the harvesting stages.

FAQEntity: one normalized question/answer record with provenance
FAQIndexEntry: lightweight listing entry pointing into the entity set
RunContext: values captured once per run and handed to every constructor
LoadResult: explicit success/failure value returned by the DocumentLoader

Data flow through the pipeline:
  DocumentLoader → LoadResult → adapter (selectors + partitioner)
  → FAQEntity → aggregator → {q, r, s, u, m, i} records on disk
"""

import hashlib
from datetime import datetime
from typing import Any, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, computed_field


def compute_identity(question: str, answer: str, source_url: str, source: str) -> str:
    """Hex MD5 digest of question + answer + source_url + source."""
    raw = f"{question}{answer}{source_url}{source}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


class RunContext(BaseModel):
    """Per-run values, captured once at start and never mutated."""
    model_config = ConfigDict(frozen=True)

    # ISO-8601 local date-time, e.g. "2020-05-04T10:21:03.512344"
    captured_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class FAQEntity(BaseModel):
    """
    A normalized question/answer record.

    question and answer are HTML fragments. identity is derived from the
    other content fields and cannot be set: two entities with the same
    (question, answer, source_url, source) always share it.
    """
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    source: str = Field(description="Display name of the publishing body")
    source_url: str
    captured_at: str = Field(description="Run timestamp from RunContext")

    @computed_field
    @property
    def identity(self) -> str:
        return compute_identity(self.question, self.answer, self.source_url, self.source)

    def to_record(self) -> dict:
        """Wire form written to faq.json and answers/<identity>.json."""
        return {
            "q": self.question,
            "r": self.answer,
            "s": self.source,
            "u": self.source_url,
            "m": self.captured_at,
            "i": self.identity,
        }


class FAQIndexEntry(BaseModel):
    """Entry of faq-questions.json. Always derived from a FAQEntity."""
    model_config = ConfigDict(frozen=True)

    question: str
    identity: str
    source: str

    @classmethod
    def from_entity(cls, entity: FAQEntity) -> "FAQIndexEntry":
        return cls(question=entity.question, identity=entity.identity, source=entity.source)

    def to_record(self) -> dict:
        return {"q": self.question, "i": self.identity, "s": self.source}


class LoadResult(BaseModel):
    """Outcome of DocumentLoader.load(): a parsed document or an error message."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    url: str
    document: Optional[BeautifulSoup] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.document is not None

    @classmethod
    def success(cls, url: str, document: BeautifulSoup) -> "LoadResult":
        return cls(url=url, document=document)

    @classmethod
    def failure(cls, url: str, error: Any) -> "LoadResult":
        return cls(url=url, error=str(error))
