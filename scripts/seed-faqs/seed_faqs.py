#!/usr/bin/env python3
"""
Seed the FAQ table from a JSON file.

Usage:
    python scripts/seed-faqs/seed_faqs.py --file scripts/seed-faqs/faqs.json

The file holds a list of {"question", "answer", "category"?} objects. The
target database comes from the DB_* environment variables.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import BaseModel, TypeAdapter

from chanswer.config import StoreBackend
from chanswer.db.database import close_db
from chanswer.db.dependencies import create_chat_store

DEFAULT_FILE = Path(__file__).parent / "faqs.json"


class FaqSeed(BaseModel):
    question: str
    answer: str
    category: str | None = None


def load_faqs(path: Path) -> list[FaqSeed]:
    with open(path, encoding="utf-8") as f:
        return TypeAdapter(list[FaqSeed]).validate_python(json.load(f))


async def seed_faqs(path: Path, dry_run: bool = False) -> None:
    """Insert every FAQ from path, skipping questions that already exist."""
    faqs = load_faqs(path)
    print(f"Seeding {len(faqs)} FAQs from {path}")
    print(f"Dry run: {dry_run}")
    print()

    store = create_chat_store(StoreBackend.POSTGRES)
    existing = {faq.question.casefold() for faq in await store.query_faqs("")}

    added = 0
    skipped = 0
    for faq in faqs:
        if faq.question.casefold() in existing:
            print(f"  - skip (exists): {faq.question}")
            skipped += 1
            continue

        print(f"  + {faq.question} [{faq.category or 'uncategorized'}]")
        if not dry_run:
            await store.save_faq(faq.question, faq.answer, faq.category)
        existing.add(faq.question.casefold())
        added += 1

    print()
    print(f"Added: {added}, skipped: {skipped}")
    if dry_run:
        print("Dry run complete - no data was written")


async def _run(path: Path, dry_run: bool) -> None:
    try:
        await seed_faqs(path, dry_run)
    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Seed the FAQ table from a JSON file")
    parser.add_argument("--file", type=Path, default=DEFAULT_FILE, help="Path to FAQ JSON")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    args = parser.parse_args()

    try:
        asyncio.run(_run(args.file, args.dry_run))
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
