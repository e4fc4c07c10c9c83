from __future__ import annotations

import logging

import pytest

from quickedit_table.formatters import email_formatter, readonly_email_formatter
from quickedit_table.grid import TableGrid
from quickedit_table.models import Column, EditConfig, ValidationSpec


def people_columns() -> list[Column]:
    return [
        Column(key="id", label="ID", sortable=True),
        Column(
            key="name",
            label="Name",
            sortable=True,
            edit_config=EditConfig(
                validation=ValidationSpec(
                    rules="yiv-required yiv-length:[2,]",
                    messages={"required": "Required", "min_length": "Too short"},
                ),
            ),
        ),
        Column(
            key="age",
            label="Age",
            sortable=True,
            edit_config=EditConfig(
                copy_down=True,
                validation=ValidationSpec(
                    rules="yiv-integer:[0,120]",
                    messages={"integer": "Enter an age"},
                ),
            ),
        ),
        Column(
            key="email",
            label="Email",
            formatter=email_formatter,
            readonly_formatter=readonly_email_formatter,
        ),
    ]


def people_records() -> list[dict[str, object]]:
    return [
        {"id": 1, "name": "Ada", "age": 7, "email": "ada@example.org"},
        {"id": 2, "name": "Bob", "age": 0, "email": "bob@example.org"},
        {"id": 3, "name": "Cy", "age": None, "email": None},
    ]


@pytest.fixture
def people_grid() -> TableGrid:
    return TableGrid(people_columns(), people_records(), footer={"name": "Total", "age": 7})


@pytest.fixture(autouse=True)
def _capture_quickedit_logs(caplog: pytest.LogCaptureFixture) -> None:
    """Capture quickedit_table logs at DEBUG so lifecycle logging is exercised."""

    caplog.set_level(logging.DEBUG, logger="quickedit_table")
