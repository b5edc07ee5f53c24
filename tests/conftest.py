import copy
import csv

import pytest
from neo4j.exceptions import ServiceUnavailable

import recipe_graph

COLUMNS = ["name", "id", "minutes", "description", "ingredients", "steps", "nutrition"]


class FakeGraph:
    """
    In-memory stand-in for the Neo4j database.

    Understands exactly the Cypher statements recipe_graph issues. Writes go
    to a per-transaction copy that replaces the committed state on commit.
    Set fail_after=N to make the N-th tx.run() raise ServiceUnavailable, and
    fail_rollback=True to make rollback() raise it too.
    """

    def __init__(self):
        self.state = {"recipes": [], "ingredients": [], "contains": []}
        self.constraints = []
        self.fail_after = None
        self.fail_rollback = False
        self.runs = 0

    # convenience views over committed state
    @property
    def recipes(self):
        return self.state["recipes"]

    @property
    def ingredient_names(self):
        return [i["name"] for i in self.state["ingredients"]]

    def edges_for(self, recipe_id):
        return sorted(
            name for idx, name in self.state["contains"]
            if self.state["recipes"][idx]["id"] == recipe_id
        )

    def apply(self, state, query, params):
        self.runs += 1
        if self.fail_after is not None and self.runs >= self.fail_after:
            raise ServiceUnavailable("connection lost")

        if query == recipe_graph.RECIPE_MERGE_CYPHER:
            for node in state["recipes"]:
                if node["id"] == params["id"]:
                    node.update(params)
                    return
            state["recipes"].append(dict(params))
        elif query == recipe_graph.RECIPE_CREATE_CYPHER:
            state["recipes"].append(dict(params))
        elif query == recipe_graph.INGREDIENT_MERGE_CYPHER:
            if params["name"] not in [i["name"] for i in state["ingredients"]]:
                state["ingredients"].append({"name": params["name"]})
        elif query == recipe_graph.CONTAINS_MERGE_CYPHER:
            if params["ingredient_name"] not in [i["name"] for i in state["ingredients"]]:
                return
            for idx, node in enumerate(state["recipes"]):
                edge = (idx, params["ingredient_name"])
                if node["id"] == params["recipe_id"] and edge not in state["contains"]:
                    state["contains"].append(edge)
        else:
            raise AssertionError(f"unexpected query: {query}")


class FakeTransaction:
    def __init__(self, graph):
        self.graph = graph
        self.work = copy.deepcopy(graph.state)
        self._closed = False
        self.committed = False
        self.rolled_back = False

    def run(self, query, **params):
        assert not self._closed, "run on closed transaction"
        self.graph.apply(self.work, query, params)

    def commit(self):
        self.graph.state = self.work
        self._closed = True
        self.committed = True

    def rollback(self):
        if self.graph.fail_rollback:
            raise ServiceUnavailable("connection reset during rollback")
        self._closed = True
        self.rolled_back = True

    def closed(self):
        return self._closed


class FakeSession:
    def __init__(self, graph):
        self.graph = graph
        self.transactions = []

    def begin_transaction(self):
        tx = FakeTransaction(self.graph)
        self.transactions.append(tx)
        return tx

    def run(self, query, **params):
        self.graph.constraints.append(query)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeDriver:
    def __init__(self, graph):
        self.graph = graph
        self.closed = False

    def session(self):
        return FakeSession(self.graph)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


@pytest.fixture
def graph():
    return FakeGraph()


@pytest.fixture
def session(graph):
    return FakeSession(graph)


@pytest.fixture
def tea_row():
    return {
        "name": "Tea",
        "id": "1",
        "minutes": "5",
        "description": "a plain cup of tea",
        "ingredients": "['water','tea leaves']",
        "steps": "['boil water','steep leaves']",
        "nutrition": "[10.0, 0.0]",
    }


@pytest.fixture
def write_csv(tmp_path):
    def _write(rows, columns=COLUMNS, name="recipes.csv"):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            for row in rows:
                writer.writerow({c: row.get(c, "") for c in columns})
        return path
    return _write


@pytest.fixture
def driver(graph):
    return FakeDriver(graph)
