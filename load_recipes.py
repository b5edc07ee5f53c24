#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Load the Food.com RAW_recipes.csv into Neo4j.

For each CSV row we:
  1. decode it into a Recipe (ingredients/steps/nutrition are bracketed text),
  2. MERGE (:Recipe {id}) and set its properties       -- one transaction,
  3. MERGE (:Ingredient {name}) and (r)-[:CONTAINS]->(i) -- one transaction.

Rows are processed one at a time. The first malformed row or store failure
aborts the run; rows committed before it stay in the graph.

Env vars (from .env, can be overridden via CLI):
  RECIPES_CSV      input file          (default data/RAW_recipes.csv)
  NEO4J_URI        bolt address        (default bolt://localhost:7687)
  NEO4J_USER       user                (default neo4j)
  NEO4J_PASSWORD   password            (required unless --dry-run)
  RECIPE_LIMIT     stop after N rows   (default: all rows)
"""

import argparse
import csv
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from dotenv import load_dotenv

from recipe_errors import RecipeLoadError
from recipe_graph import attach_ingredients, connect, create_recipe_node, ensure_constraints
from recipe_normalizer import check_columns, normalize_row

logger = logging.getLogger("recipe-loader")

# ---------- Config ----------
DEFAULT_CSV = "data/RAW_recipes.csv"
DEFAULT_URI = "bolt://localhost:7687"
DEFAULT_USER = "neo4j"
PROGRESS_EVERY = 1000


@dataclass
class LoadSummary:
    rows_seen: int = 0
    recipes_written: int = 0
    ingredient_links: int = 0


# ---------- Input ----------
def read_rows(path: str) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield (line_no, row) for every data row; line 1 is the header."""
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        check_columns(reader.fieldnames)
        for row in reader:
            yield reader.line_num, row


# ---------- Main logic ----------
def load_recipes(
    session,
    rows: Iterable[Tuple[int, Dict[str, Any]]],
    upsert: bool = True,
    limit: Optional[int] = None,
    dry_run: bool = False,
) -> LoadSummary:
    summary = LoadSummary()
    for line_no, row in rows:
        if limit is not None and summary.rows_seen >= limit:
            logger.info("Reached limit of %d rows", limit)
            break
        summary.rows_seen += 1

        # Decode fully before touching the store.
        recipe = normalize_row(row, line_no)

        if dry_run:
            logger.info("[DRY-RUN] Would write recipe %s (%r) with %d ingredients",
                        recipe.id, recipe.name, len(recipe.ingredients))
            continue

        create_recipe_node(session, recipe, upsert=upsert)
        summary.recipes_written += 1
        summary.ingredient_links += attach_ingredients(session, recipe.id, recipe.ingredients)

        if summary.recipes_written % PROGRESS_EVERY == 0:
            logger.info("Loaded %d recipes (%d ingredient links)",
                        summary.recipes_written, summary.ingredient_links)
    return summary


def run(args) -> LoadSummary:
    logger.info("Reading CSV: %s", args.csv_path)
    rows = read_rows(args.csv_path)

    if args.dry_run:
        return load_recipes(None, rows, limit=args.limit, dry_run=True)

    driver = connect(args.uri, args.user, args.password)
    with driver, driver.session() as session:
        if args.ensure_constraints:
            ensure_constraints(session)
        return load_recipes(session, rows, upsert=not args.legacy_create, limit=args.limit)


# ---------- CLI ----------
def parse_args(argv=None):
    limit_env = os.getenv("RECIPE_LIMIT")

    p = argparse.ArgumentParser(
        description="Load recipes CSV into Neo4j as (:Recipe)-[:CONTAINS]->(:Ingredient)."
    )
    p.add_argument("csv_path", nargs="?", default=os.getenv("RECIPES_CSV", DEFAULT_CSV),
                   help=f"Path to the recipes CSV (default {DEFAULT_CSV})")
    p.add_argument("--uri", default=os.getenv("NEO4J_URI", DEFAULT_URI))
    p.add_argument("--user", default=os.getenv("NEO4J_USER", DEFAULT_USER))
    p.add_argument("--password", default=os.getenv("NEO4J_PASSWORD"))
    p.add_argument("--limit", type=int, default=int(limit_env) if limit_env else None,
                   help="Stop after this many rows")
    p.add_argument("--legacy-create", action="store_true",
                   help="CREATE recipe nodes unconditionally (reruns duplicate them)")
    p.add_argument("--ensure-constraints", action="store_true",
                   help="Create uniqueness constraints on Recipe(id) and Ingredient(name) first")
    p.add_argument("--dry-run", action="store_true", help="Parse and validate only; no writes")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s | %(message)s")

    if not args.dry_run and not (args.uri and args.user and args.password):
        raise SystemExit("Missing Neo4j credentials. Ensure NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD "
                         "are set in .env or passed as --uri/--user/--password")

    try:
        summary = run(args)
    except RecipeLoadError as e:
        logger.error("Aborting: %s", e)
        raise SystemExit(f"Recipe load failed: {e}") from e
    except OSError as e:
        logger.error("Cannot read %s: %s", args.csv_path, e)
        raise SystemExit(f"Recipe load failed: {e}") from e

    logger.info("Done. Rows seen: %d | recipes written: %d | ingredient links: %d",
                summary.rows_seen, summary.recipes_written, summary.ingredient_links)
    return summary


if __name__ == "__main__":
    main()
