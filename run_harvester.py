#!/usr/bin/env python3
"""
CLI script to run the FAQ harvester.

Loads every configured FAQ page, extracts question/answer pairs and writes
faq.json, faq-questions.json and answers/<identity>.json under the output
directory (FAQ_OUTPUT_DIR, default: docs/).

Usage:
    python run_harvester.py
    python run_harvester.py --only urssaf gouvernement --dry-run
    python run_harvester.py --output-dir public/ -v
    python run_harvester.py --list
"""

import argparse
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError
load_dotenv()

from faq_harvester.adapters import ADAPTERS
from faq_harvester.config import HarvesterConfig
from faq_harvester.exceptions import HarvesterError
from faq_harvester.logger import setup_logger
from faq_harvester.main import FAQHarvester


def main():
    parser = argparse.ArgumentParser(description="Harvest FAQ pages into a JSON dataset")
    parser.add_argument("--output-dir", "-o", help="Dataset directory (overrides FAQ_OUTPUT_DIR)")
    parser.add_argument("--local-docs-dir", help="Directory of pinned page copies")
    parser.add_argument("--only", nargs="+", metavar="KEY", help="Run only these adapters")
    parser.add_argument("--list", action="store_true", help="List adapters and exit")
    parser.add_argument("--dry-run", action="store_true", help="Harvest without writing files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", help="Also log to this file")
    args = parser.parse_args()

    if args.list:
        for adapter in ADAPTERS:
            print(f"{adapter.key:20} {adapter.source} ({len(adapter.urls)} page(s))")
        return 0

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(level=log_level, log_file=args.log_file)

    adapters = ADAPTERS
    if args.only:
        known = {adapter.key for adapter in ADAPTERS}
        unknown = [key for key in args.only if key not in known]
        if unknown:
            print(f"Unknown adapter(s): {', '.join(unknown)}", file=sys.stderr)
            return 2
        # Registry order is kept whatever order the keys were given in
        adapters = [adapter for adapter in ADAPTERS if adapter.key in args.only]

    try:
        config = HarvesterConfig.from_env(
            output_dir=args.output_dir,
            local_docs_dir=args.local_docs_dir,
        )
    except ValidationError as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    harvester = FAQHarvester(config=config, adapters=adapters)

    try:
        records, _ = harvester.run(write=not args.dry_run)
    except HarvesterError as e:
        print(f"✗ Harvest failed: {e.message}", file=sys.stderr)
        return 1

    counts = {}
    for record in records:
        counts[record["s"]] = counts.get(record["s"], 0) + 1
    for source, count in counts.items():
        print(f"  {source}: {count}")

    if args.dry_run:
        print(f"\n{len(records)} FAQ records (dry run, nothing written)")
    else:
        print(f"\n{len(records)} FAQ records written to {config.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
