import pytest


class FakeQuery:
    def __init__(self, client, table, action, values):
        self.client = client
        self.table = table
        self.action = action
        self.values = values
        self.filters = {}

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def execute(self):
        self.client.calls.append((self.table, self.action, self.values, dict(self.filters)))
        rows = self.client.rows.setdefault(self.table, {})
        if self.action == "insert":
            rows[self.values["id"]] = dict(self.values)
        elif self.action == "update":
            for row in rows.values():
                if all(row.get(k) == v for k, v in self.filters.items()):
                    row.update(self.values)
        return self


class FakeTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def insert(self, values):
        return FakeQuery(self.client, self.name, "insert", values)

    def update(self, values):
        return FakeQuery(self.client, self.name, "update", values)


class FakeSupabase:
    """In-memory stand-in for the supabase-py query builder."""

    def __init__(self):
        self.rows = {}
        self.calls = []

    def table(self, name):
        return FakeTable(self, name)


@pytest.fixture
def supabase():
    return FakeSupabase()
