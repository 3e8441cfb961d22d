"""Export of the content of a table.

The table never encodes files itself. It builds an `ExportData` payload with
the columns and the rows, and hands it to an encoder together with the
`ExportOptions`. Encoders are either supplied by the host (the `on_export`
callback of the table) or picked from `exgrid.encoders`.
"""

import inspect
import logging
from datetime import date, datetime
from enum import StrEnum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from attrs import define, field
from pydantic import BaseModel, Field

from exgrid.accessor import (
    MISSING,
    Accessor,
    Derived,
    FieldPath,
    resolve_accessor,
)
from exgrid.column import ColumnSchema
from exgrid.filter import Filter
from exgrid.registry import ColumnRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExportFormat(StrEnum):
    """The formats a table can be exported to.

    Attributes:
        CSV: Comma separated values.
        EXCEL: Excel workbook.
        PDF: PDF document.
    """

    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"

    @property
    def extension(self) -> str:
        return {
            ExportFormat.CSV: ".csv",
            ExportFormat.EXCEL: ".xlsx",
            ExportFormat.PDF: ".pdf",
        }[self]


def default_filename(today: Optional[date] = None) -> str:
    """The name used when the caller provides none (`export-2024-01-31`)."""
    today = today or date.today()
    return f"export-{today.isoformat()}"


class ExportOptions(BaseModel):
    """Options passed to the encoders.

    Attributes:
        filename: Name of the file, without extension.
        title: Title placed above the table.
        subtitle: Secondary title.
        include_hidden_columns: Export every column of the schema instead of
            the visible ones.
        orientation: Page orientation of paginated documents.
        page_size: Paper size of paginated documents.
    """

    filename: str = Field(default_factory=default_filename, min_length=1)
    title: Optional[str] = None
    subtitle: Optional[str] = None
    include_hidden_columns: bool = False
    orientation: Literal["portrait", "landscape"] = "landscape"
    page_size: Literal["A4", "A3", "Letter"] = "A4"


@define(frozen=True)
class ExportColumn:
    """A column of the exported table.

    Attributes:
        key: The key of the column.
        heading: The label written in the header row.
        accessor: How to read the value from a row.
    """

    key: str
    heading: str
    accessor: Accessor

    @classmethod
    def from_schema(cls, schema: ColumnSchema) -> "ExportColumn":
        return cls(
            key=schema.key, heading=schema.heading, accessor=schema.accessor
        )

    @property
    def is_derived(self) -> bool:
        return isinstance(self.accessor, Derived)

    def value(self, row: Any) -> Any:
        """The value of this column in a row; `None` if it is missing."""
        value = resolve_accessor(self.accessor, row)
        return None if value is MISSING else value


@define(frozen=True, kw_only=True)
class ExportData:
    """The payload handed to encoders.

    Attributes:
        columns: The exported columns, in order.
        rows: The rows as supplied by the host.
        title: Title of the document.
        subtitle: Secondary title of the document.
        generated_at: When the payload was created.
        filters: The filters that produced the rows.
    """

    columns: Tuple[ExportColumn, ...] = field(converter=tuple)
    rows: Tuple[Any, ...] = field(converter=tuple, repr=False)
    title: Optional[str] = None
    subtitle: Optional[str] = None
    generated_at: datetime = field(factory=datetime.now)
    filters: Tuple[Filter, ...] = field(factory=tuple, converter=tuple)

    @property
    def headers(self) -> List[str]:
        return [c.heading for c in self.columns]

    def resolved(self) -> "ExportData":
        """A copy where every row is a plain dictionary keyed by column.

        Encoders that cannot evaluate accessor functions receive this
        projection; every accessor of the copy is a field path.
        """
        rows = [
            {c.key: c.value(row) for c in self.columns} for row in self.rows
        ]
        columns = [
            ExportColumn(
                key=c.key, heading=c.heading, accessor=FieldPath(c.key)
            )
            for c in self.columns
        ]
        return ExportData(
            columns=columns,
            rows=rows,
            title=self.title,
            subtitle=self.subtitle,
            generated_at=self.generated_at,
            filters=self.filters,
        )

    def to_matrix(self) -> Tuple[List[str], List[List[Any]]]:
        """The headers and the values of each row, column by column."""
        return self.headers, [
            [c.value(row) for c in self.columns] for row in self.rows
        ]


def build_export_data(
    registry: ColumnRegistry,
    rows: Sequence[Any],
    options: Optional[ExportOptions] = None,
    filters: Sequence[Filter] = (),
) -> ExportData:
    """Create the export payload for a table.

    The columns are the visible ones unless the options ask for hidden
    columns, in which case every column in the schema is exported, including
    the ones that only exist for filtering. The rendered header row plays no
    part in this decision.
    """
    options = options or ExportOptions()
    if options.include_hidden_columns:
        schemas = list(registry.schemas)
    else:
        schemas = registry.visible_columns

    return ExportData(
        columns=[ExportColumn.from_schema(s) for s in schemas],
        rows=rows,
        title=options.title,
        subtitle=options.subtitle,
        filters=filters,
    )


ExportResult = Union[T, Awaitable[T]]


@define
class ExportRunner:
    """Runs one export at a time.

    While an export is running the runner is busy and further requests are
    ignored. The busy flag is cleared and the export menu is closed when the
    export ends, whether it succeeded or not.

    Attributes:
        busy: An export is in progress.
        menu_open: The export menu is shown.
        on_busy_changed: Callbacks invoked with the new value of `busy`.
    """

    busy: bool = field(default=False, init=False)
    menu_open: bool = field(default=False, init=False)
    on_busy_changed: List[Callable[["ExportRunner", bool], None]] = field(
        factory=list, repr=False
    )

    def _set_busy(self, value: bool) -> None:
        self.busy = value
        for callback in self.on_busy_changed:
            callback(self, value)

    def open_menu(self) -> None:
        if not self.busy:
            self.menu_open = True

    def close_menu(self) -> None:
        self.menu_open = False

    async def run(
        self,
        func: Callable[..., ExportResult[T]],
        *args: Any,
        **kwargs: Any,
    ) -> Optional[T]:
        """Run an export function.

        The function may return a value or an awaitable.

        Returns:
            The result of the function or None if another export was
            already running.
        """
        if self.busy:
            logger.warning("An export is already in progress; ignoring")
            return None

        self._set_busy(True)
        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception:
            logger.error("Export failed", exc_info=True)
            raise
        finally:
            self._set_busy(False)
            self.close_menu()


def describe(data: ExportData) -> Dict[str, Any]:
    """A plain summary of a payload, used in log messages."""
    return {
        "columns": [c.key for c in data.columns],
        "rows": len(data.rows),
        "title": data.title,
        "generated_at": data.generated_at.isoformat(),
    }
