"""
Runtime configuration for the FAQ harvester.

Values come from environment variables (the CLI calls load_dotenv() first,
so a local .env file works too). Command-line flags override them.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_USER_AGENT = "faq-harvester/1.0"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class HarvesterConfig(BaseModel):
    """Settings shared by the loader, the adapters and the dataset writer."""
    output_dir: Path = Field(default=Path("docs"), description="Root of the JSON dataset")
    local_docs_dir: Path = Field(default=Path("websites"), description="Pinned local copies of pages")
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = Field(default=30.0, gt=0)
    # Sources are a fixed, trusted list; several serve incomplete chains
    verify_tls: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "HarvesterConfig":
        """Build a config from FAQ_* environment variables, then apply overrides."""
        values = {
            "output_dir": os.getenv("FAQ_OUTPUT_DIR", "docs"),
            "local_docs_dir": os.getenv("FAQ_LOCAL_DOCS_DIR", "websites"),
            "user_agent": os.getenv("FAQ_USER_AGENT", DEFAULT_USER_AGENT),
            "request_timeout": os.getenv("FAQ_REQUEST_TIMEOUT", "30"),
            "verify_tls": _env_flag("FAQ_VERIFY_TLS", False),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def local_document(self, filename: Optional[str]) -> Optional[Path]:
        """Resolve a pinned document name against local_docs_dir."""
        if filename is None:
            return None
        return self.local_docs_dir / filename
