import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import click
from dotenv import load_dotenv

from exgrid.__version__ import __version__
from exgrid.column import ColumnSchema
from exgrid.encoders.api import write_export
from exgrid.export import ExportFormat, ExportOptions
from exgrid.filter import Filter
from exgrid.memory import MemorySource
from exgrid.query import TableQuery
from exgrid.settings import GridSettings
from exgrid.sort import SortBy, SortDirection
from exgrid.table import TableState

logger = logging.getLogger(__name__)


def create_context_obj(debug: bool) -> Dict[str, Any]:
    """Sets up the logging and prepares the context for the CLI.

    Args:
        debug: If True, sets the logging level to DEBUG.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.debug("Debug mode is on")

    return {
        "settings": GridSettings.from_env(),
    }


def load_table_file(path: str) -> Tuple[List[ColumnSchema], List[Any]]:
    """Read the columns and the rows from a JSON document.

    The document has the form
    `{"columns": [{"key": ..., "heading": ..., "accessor": ..., "hidden":
    ...}], "rows": [...]}`. Only `key` is required for a column.
    """
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)
    if not isinstance(document, dict):
        raise click.BadParameter("The document must be a JSON object")

    columns = []
    for item in document.get("columns", []):
        if isinstance(item, str):
            item = {"key": item}
        columns.append(
            ColumnSchema(
                key=item["key"],
                heading=item.get("heading", ""),
                accessor=item.get("accessor"),
                is_numeric=item.get("numeric", False),
                sortable=item.get("sortable", True),
                default_visible=not item.get("hidden", False),
            )
        )
    rows = document.get("rows", [])
    if not columns and rows and isinstance(rows[0], dict):
        columns = [ColumnSchema(key=k) for k in rows[0]]
    return columns, rows


def parse_filter(text: str) -> Filter:
    """Parse a `COLUMN:OPERATOR[:VALUE]` filter.

    The value is read as JSON when possible (`30`, `true`, `[1, 2]`) and as
    plain text otherwise.
    """
    parts = text.split(":", 2)
    if len(parts) < 2:
        raise click.BadParameter(
            f"Expected COLUMN:OPERATOR[:VALUE], got {text!r}"
        )
    value: Any = None
    if len(parts) == 3:
        try:
            value = json.loads(parts[2])
        except ValueError:
            value = parts[2]
    try:
        return Filter.create(parts[0], parts[1], value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def parse_sort(text: str) -> Tuple[str, SortDirection]:
    """Parse a `COLUMN[:asc|desc]` sort."""
    column, _, direction = text.partition(":")
    try:
        return column, SortDirection(direction or SortDirection.ASC)
    except ValueError as e:
        raise click.BadParameter(
            f"Unknown sort direction {direction!r}"
        ) from e


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.version_option(__version__, prog_name="exgrid")
@click.pass_context
def cli(context: click.Context, debug: bool):
    load_dotenv()
    context.obj = create_context_obj(debug)


@cli.command()
@click.argument(
    "input_file", type=click.Path(exists=True, dir_okay=False)
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice([str(f) for f in ExportFormat]),
    default=str(ExportFormat.CSV),
    show_default=True,
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path of the file; defaults to the export directory.",
)
@click.option("--filename", default=None, help="File name, no extension.")
@click.option("--title", default=None)
@click.option("--subtitle", default=None)
@click.option(
    "--orientation",
    type=click.Choice(["portrait", "landscape"]),
    default="landscape",
    show_default=True,
)
@click.option(
    "--page-size",
    type=click.Choice(["A4", "A3", "Letter"]),
    default="A4",
    show_default=True,
)
@click.option(
    "--include-hidden/--visible-only",
    default=False,
    help="Also export the columns that are hidden by default.",
)
@click.pass_context
def export(
    context: click.Context,
    input_file: str,
    fmt: str,
    output: Optional[str],
    filename: Optional[str],
    title: Optional[str],
    subtitle: Optional[str],
    orientation: str,
    page_size: str,
    include_hidden: bool,
):
    """Export the rows of a JSON document."""
    settings: GridSettings = context.obj["settings"]
    columns, rows = load_table_file(input_file)

    values: Dict[str, Any] = {
        "title": title,
        "subtitle": subtitle,
        "orientation": orientation,
        "page_size": page_size,
        "include_hidden_columns": include_hidden,
    }
    if filename:
        values["filename"] = filename
    elif output:
        values["filename"] = os.path.splitext(os.path.basename(output))[0]
    options = ExportOptions(**values)

    with TableState(
        columns, rows=rows, total=len(rows), settings=settings
    ) as table:
        data = table.export_data(options, rows)
    path = write_export(
        fmt, data, options, settings.export_directory, path=output or ""
    )
    click.echo(path)


@cli.command()
@click.argument(
    "input_file", type=click.Path(exists=True, dir_okay=False)
)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, default=None)
@click.option("--sort", "sort", default=None, help="COLUMN[:asc|desc]")
@click.option(
    "--filter",
    "filters",
    multiple=True,
    help="COLUMN:OPERATOR[:VALUE]; can be repeated.",
)
@click.pass_context
def page(
    context: click.Context,
    input_file: str,
    page: int,
    page_size: Optional[int],
    sort: Optional[str],
    filters: Tuple[str, ...],
):
    """Show one page of the rows of a JSON document."""
    settings: GridSettings = context.obj["settings"]
    columns, rows = load_table_file(input_file)
    source = MemorySource(rows=rows, columns=columns)
    parsed = [parse_filter(f) for f in filters]
    sort_by = None
    if sort:
        column, direction = parse_sort(sort)
        sort_by = SortBy(column, direction)

    def reload(query: TableQuery) -> None:
        response = source.fetch(query)
        table.set_data(response.data, response.total)

    table = TableState(
        columns,
        settings=settings,
        initial_sort_by=sort_by,
        initial_filters=parsed,
        on_reload=reload,
    )
    with table:
        reload(table.query())
        if page_size is not None:
            table.pagination.set_page_size(page_size)
        table.pagination.set_page(page)
        click.echo(render_view(table))


def render_view(table: TableState) -> str:
    """The current page of a table as plain text."""
    view = table.view()
    lines = []
    if view.filters:
        lines.append(
            "Filters: " + "; ".join(f.display_label for f in view.filters)
        )
    if view.sort_by is not None:
        lines.append(f"Sort: {view.sort_by.column_id} {view.sort_by.direction}")
    if view.message:
        lines.append(view.message)
    else:
        lines.append(" | ".join(c.heading for c in view.columns))
        for row in view.rows:
            lines.append(" | ".join(c.display for c in row.cells))
    pg = view.pagination
    if not pg.visible:
        lines.append(pg.page_range)
        return "\n".join(lines)
    lines.append(
        f"{pg.page_range} (page {pg.pagination.page} of "
        f"{pg.pagination.total_pages}; pages "
        f"{' '.join(str(n) for n in pg.page_numbers)})"
    )
    return "\n".join(lines)
