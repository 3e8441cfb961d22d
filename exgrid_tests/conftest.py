"""
Available fixtures:

- **`columns`**: A schema with a numeric column, a derived column, a column
  hidden by default and a filter-only column.
- **`people`**: Forty-seven rows shaped like the ones a host would deliver.
- **`callbacks`**: One `MagicMock` for each host callback of a table.
- **`table`**: A `TableState` showing the first page of `people`, wired to
  `callbacks`.
"""

from unittest import mock

import pytest

from exgrid.api import (
    CellWarning,
    ColumnSchema,
    FilterDescriptor,
    TableState,
)


def _age_warning(row):
    if row.get("age") is None:
        return CellWarning("Age is unknown", "info")
    return None


@pytest.fixture
def columns():
    return [
        ColumnSchema(key="id", heading="ID", is_numeric=True, sortable=True),
        ColumnSchema(key="name", heading="Name", sortable=True),
        ColumnSchema(
            key="age",
            heading="Age",
            is_numeric=True,
            sortable=True,
            warning_fn=_age_warning,
        ),
        ColumnSchema(
            key="city",
            heading="City",
            accessor="address.city",
            sort_key="address_city",
            sortable=True,
        ),
        ColumnSchema(
            key="initials",
            accessor=lambda row: "".join(
                p[0] for p in row["name"].split()
            ),
        ),
        ColumnSchema(key="email", default_visible=False),
        ColumnSchema(
            key="blood_type",
            filter=FilterDescriptor(
                lookup_name="blood_types", filter_only=True
            ),
        ),
    ]


@pytest.fixture
def people():
    cities = ["Paris", "Berlin", "Madrid"]
    return [
        {
            "id": i,
            "name": f"Person {i} Example",
            "age": None if i % 10 == 0 else 20 + i,
            "address": {"city": cities[i % 3]},
            "email": f"person{i}@example.com",
            "blood_type": "A" if i % 2 else "B",
        }
        for i in range(1, 48)
    ]


@pytest.fixture
def callbacks():
    return {
        "on_sort": mock.MagicMock(),
        "on_filter": mock.MagicMock(),
        "on_page_change": mock.MagicMock(),
        "on_selection_change": mock.MagicMock(),
        "on_reload": mock.MagicMock(),
    }


@pytest.fixture
def table(columns, people, callbacks):
    with TableState(
        columns, rows=people[:20], total=len(people), **callbacks
    ) as result:
        yield result
