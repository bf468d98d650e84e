#!/usr/bin/env python3
"""Initialize the database and optionally seed it from a YAML catalog file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from pattern_discovery.db.database import Database
from pattern_discovery.errors import CatalogError
from pattern_discovery.models.catalog import Pattern
from pattern_discovery.services.catalog_service import CatalogService


def main():
    parser = argparse.ArgumentParser(description="Initialize the pattern database")
    parser.add_argument("--seed", type=str, help="YAML file with domains/categories/patterns")
    parser.add_argument("--db-path", type=str, help="Override database path")
    args = parser.parse_args()

    db_path = Path(args.db_path) if args.db_path else None
    db = Database(path=db_path)
    db.init()
    print(f"Database initialized at: {db.path}")

    if args.seed:
        seed_catalog(db, Path(args.seed))

    db.close()
    print("Done.")


def seed_catalog(db: Database, path: Path) -> int:
    """Load a catalog file; existing entries are skipped. Returns patterns added."""
    import yaml
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    catalog = CatalogService(db)
    added = 0
    for d in data.get("domains", []):
        try:
            catalog.add_domain(d["slug"], d["name"], d.get("description", ""))
            print(f"  Created domain: {d['slug']}")
        except CatalogError as e:
            print(f"  Skipping domain {d['slug']}: {e}")

        for c in d.get("categories", []):
            try:
                catalog.add_category(d["slug"], c["slug"], c["name"], c.get("description", ""))
                print(f"  Created category: {d['slug']}/{c['slug']}")
            except CatalogError as e:
                print(f"  Skipping category {d['slug']}/{c['slug']}: {e}")
                continue

            for p in c.get("patterns", []):
                pattern = Pattern(
                    label=p["label"],
                    description=p["description"],
                    intention=p["intention"],
                    template=p["template"],
                )
                catalog.add_pattern(d["slug"], c["slug"], pattern)
                added += 1
                print(f"    Added pattern #{pattern.id}: {pattern.label}")
    return added


if __name__ == "__main__":
    main()
