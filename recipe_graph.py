#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Write Recipe records into Neo4j.

Graph shape:

    (:Recipe {id, name, description, minutes, nutrition, steps})
        -[:CONTAINS]->
    (:Ingredient {name})

Every function takes an open neo4j Session; nothing here holds a global
driver. Each operation runs in its own explicit transaction, committed on
success and rolled back on failure before a StoreError is raised.
"""

import logging
from typing import Iterable

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from recipe_errors import StoreConnectionError, StoreError
from recipe_normalizer import Recipe

logger = logging.getLogger("recipe-graph")

# ---------- Cypher ----------
RECIPE_MERGE_CYPHER = """
MERGE (r:Recipe {id: $id})
SET r.name        = $name,
    r.description = $description,
    r.minutes     = $minutes,
    r.nutrition   = $nutrition,
    r.steps       = $steps
"""

# Legacy behaviour: a rerun creates a second node for the same id.
RECIPE_CREATE_CYPHER = """
CREATE (r:Recipe {id: $id, name: $name, description: $description,
                  minutes: $minutes, nutrition: $nutrition, steps: $steps})
RETURN r
"""

INGREDIENT_MERGE_CYPHER = """
MERGE (i:Ingredient {name: $name})
"""

CONTAINS_MERGE_CYPHER = """
MATCH (r:Recipe {id: $recipe_id}), (i:Ingredient {name: $ingredient_name})
MERGE (r)-[:CONTAINS]->(i)
"""

CONSTRAINTS_CYPHER = [
    """
    CREATE CONSTRAINT ingredient_name_unique IF NOT EXISTS
    FOR (i:Ingredient) REQUIRE i.name IS UNIQUE
    """,
    """
    CREATE CONSTRAINT recipe_id_unique IF NOT EXISTS
    FOR (r:Recipe) REQUIRE r.id IS UNIQUE
    """,
]


# ---------- Connection ----------
def connect(uri: str, user: str, password: str):
    """Open a driver and check that the server accepts the credentials."""
    logger.info("Connecting to Neo4j at %s ...", uri)
    driver = None
    try:
        driver = GraphDatabase.driver(uri, auth=(user, password))
        driver.verify_connectivity()
    except (DriverError, Neo4jError, ValueError) as e:
        if driver is not None:
            driver.close()
        raise StoreConnectionError(f"Cannot connect to Neo4j at {uri}: {e}") from e
    return driver


def ensure_constraints(session) -> None:
    logger.info("Ensuring Ingredient(name) and Recipe(id) uniqueness constraints...")
    try:
        for stmt in CONSTRAINTS_CYPHER:
            session.run(stmt)
    except (Neo4jError, DriverError) as e:
        raise StoreError(f"Creating constraints failed: {e}") from e


# ---------- Transactions ----------
def _rollback(tx) -> None:
    if tx is None or tx.closed():
        return
    try:
        tx.rollback()
    except (Neo4jError, DriverError) as e:
        logger.warning("Rollback failed: %s", e)


def create_recipe_node(session, recipe: Recipe, upsert: bool = True) -> None:
    """
    Write one :Recipe node in its own transaction.

    With upsert=False the node is CREATEd unconditionally, so loading the
    same id twice leaves two nodes unless the store has a constraint on id.
    """
    query = RECIPE_MERGE_CYPHER if upsert else RECIPE_CREATE_CYPHER
    tx = None
    try:
        tx = session.begin_transaction()
        tx.run(query, **recipe.to_params())
        tx.commit()
    except (Neo4jError, DriverError) as e:
        logger.error("Writing recipe %s failed: %s", recipe.id, e)
        _rollback(tx)
        raise StoreError(f"Writing recipe {recipe.id} failed: {e}") from e
    logger.debug("Wrote recipe %s (%s)", recipe.id, recipe.name)


def attach_ingredients(session, recipe_id: int, ingredients: Iterable[str]) -> int:
    """
    MERGE each ingredient and a CONTAINS edge from the recipe to it.

    The whole list shares one transaction: either every edge for the recipe
    is committed or none is. Returns the number of ingredient names handled.
    """
    handled = 0
    tx = None
    try:
        tx = session.begin_transaction()
        for name in ingredients:
            tx.run(INGREDIENT_MERGE_CYPHER, name=name)
            tx.run(CONTAINS_MERGE_CYPHER, recipe_id=recipe_id, ingredient_name=name)
            handled += 1
        tx.commit()
    except (Neo4jError, DriverError) as e:
        logger.error("Linking ingredients to recipe %s failed: %s", recipe_id, e)
        _rollback(tx)
        raise StoreError(f"Linking ingredients to recipe {recipe_id} failed: {e}") from e
    return handled
