"""The composition root of a table.

A `TableState` owns the slices of one table (pagination, sort, filters,
selection) and the column registry. It is the only place where changes in
one slice affect another:

- a new sort or a change in the filters moves the table back to the first
  page;
- changing the page or the page size leaves the selection alone;
- every change that needs new data is reported to the host through
  `on_reload` together with the query that describes the data to load.

The table never loads data itself. The host supplies the rows of the
current page and the total number of rows through `set_data`.
"""

import asyncio
import logging
from typing import (
    Any,
    Callable,
    Hashable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from attrs import define, field

from exgrid.column import ColumnMeta, ColumnSchema
from exgrid.encoders.api import write_export
from exgrid.export import (
    ExportData,
    ExportFormat,
    ExportOptions,
    ExportRunner,
    build_export_data,
    describe,
)
from exgrid.filter import Filter, FilterSlice
from exgrid.pagination import PaginationSlice
from exgrid.query import TableQuery
from exgrid.registry import ColumnRegistry
from exgrid.selection import SelectionSlice, default_identity
from exgrid.settings import GridSettings
from exgrid.slice import GridScopeError, Slice
from exgrid.sort import SortBy, SortSlice
from exgrid.utils import count_text
from exgrid.view import (
    CellView,
    HeaderCell,
    PaginationView,
    RowView,
    TableView,
    ViewStatus,
)

logger = logging.getLogger(__name__)


def _to_registry(
    value: Union[ColumnRegistry, Sequence[ColumnSchema]],
) -> ColumnRegistry:
    if isinstance(value, ColumnRegistry):
        return value
    return ColumnRegistry(value)


@define
class TableState:
    """State of one table.

    Attributes:
        registry: The column definitions and their runtime state.
        rows: The rows of the current page, as delivered by the host.
        total: The number of rows across all pages, as reported by the host.
        loading: The host is loading new rows.
        settings: Page sizes, texts and export location.
        identity: Maps a row to the key used by the selection.
        initial_sort_by: The sort in effect when the table is created.
        initial_filters: The filters in effect when the table is created.
        on_sort: Called with the new sort (or None) when the sort changes.
        on_filter: Called with the new list of filters when they change.
        on_page_change: Called with the page and the page size when the
            user moves to another page or changes the page size.
        on_selection_change: Called with the selected rows when the
            selection changes.
        on_reload: Called with a `TableQuery` each time the host should
            load new rows.
        on_export: Called with the format, the options and the payload to
            perform an export; may return an awaitable. When it is not set
            the built-in encoders write a file in the export directory.
        pagination: The pagination slice.
        sorting: The sort slice.
        filtering: The filter slice.
        selection: The selection slice.
        exporter: Guards against concurrent exports.
        disposed: The table was disposed and its slices can no longer be
            used.
    """

    registry: ColumnRegistry = field(converter=_to_registry)
    rows: List[Any] = field(factory=list, converter=list, repr=False)
    total: int = field(default=0)
    loading: bool = field(default=False)
    settings: GridSettings = field(factory=GridSettings, repr=False)
    identity: Callable[[Any], Hashable] = field(
        default=default_identity, repr=False
    )
    initial_sort_by: Optional[SortBy] = field(default=None, repr=False)
    initial_filters: Sequence[Filter] = field(factory=tuple, repr=False)

    on_sort: Optional[Callable[[Optional[SortBy]], Any]] = field(
        default=None, kw_only=True, repr=False
    )
    on_filter: Optional[Callable[[List[Filter]], Any]] = field(
        default=None, kw_only=True, repr=False
    )
    on_page_change: Optional[Callable[[int, int], Any]] = field(
        default=None, kw_only=True, repr=False
    )
    on_selection_change: Optional[Callable[[List[Any]], Any]] = field(
        default=None, kw_only=True, repr=False
    )
    on_reload: Optional[Callable[[TableQuery], Any]] = field(
        default=None, kw_only=True, repr=False
    )
    on_export: Optional[
        Callable[[ExportFormat, ExportOptions, ExportData], Any]
    ] = field(default=None, kw_only=True, repr=False)

    pagination: PaginationSlice = field(init=False, repr=False)
    sorting: SortSlice = field(init=False, repr=False)
    filtering: FilterSlice = field(init=False, repr=False)
    selection: SelectionSlice = field(init=False, repr=False)
    exporter: ExportRunner = field(factory=ExportRunner, init=False)
    disposed: bool = field(default=False, init=False)

    def __attrs_post_init__(self) -> None:
        stg = self.settings
        self.pagination = PaginationSlice(
            page_size=stg.page_size,
            total=self.total,
            page_size_options=list(stg.page_size_options),
            max_page_size=stg.max_page_size,
            max_visible=stg.max_visible_pages,
            owner=self,
            on_changed=[self._page_changed],
        )
        self.sorting = SortSlice(
            sort_by=self.initial_sort_by,
            owner=self,
            on_changed=[self._sort_changed],
        )
        self.filtering = FilterSlice(
            filters=self.initial_filters,
            owner=self,
            on_changed=[self._filters_changed],
        )
        self.selection = SelectionSlice(
            identity=self.identity,
            owner=self,
            on_changed=[self._selection_changed],
        )
        if self.initial_sort_by is not None:
            self.registry.apply_sort(self.initial_sort_by)

        logger.debug(
            "Table created with %d columns and %d rows of %d",
            len(self.registry),
            len(self.rows),
            self.total,
        )

    # Lifetime

    def dispose(self) -> None:
        """Detach the slices; using them afterwards raises GridScopeError."""
        if not self.disposed:
            logger.debug("Table disposed")
        self.disposed = True

    def __enter__(self) -> "TableState":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()

    def check_alive(self) -> None:
        if self.disposed:
            raise GridScopeError("The TableState was disposed")

    # Reactions to slice changes

    def _emit(self, name: str, *args: Any) -> None:
        callback = getattr(self, name)
        if callback is None:
            return
        logger.debug("Calling %s", name)
        callback(*args)

    def _reload(self) -> None:
        self._emit("on_reload", self.query())

    def _page_changed(self, source: Slice, payload: Any) -> None:
        page, page_size = payload
        self._emit("on_page_change", page, page_size)
        self._reload()

    def _sort_changed(self, source: Slice, sort_by: Optional[SortBy]) -> None:
        self.pagination.reset_page()
        self.registry.apply_sort(sort_by)
        self._emit("on_sort", sort_by)
        self._reload()

    def _filters_changed(self, source: Slice, filters: List[Filter]) -> None:
        self.pagination.reset_page()
        self._emit("on_filter", filters)
        self._reload()

    def _selection_changed(self, source: Slice, items: List[Any]) -> None:
        self._emit("on_selection_change", items)

    # Data from the host

    def set_data(
        self, rows: Sequence[Any], total: int, loading: bool = False
    ) -> None:
        """Replace the rows of the current page.

        The current page is clamped to the new number of pages; this does
        not inform the host, as it is the host that provided the data.

        Args:
            rows: The rows of the current page.
            total: The number of rows across all pages.
            loading: The host is still loading.
        """
        self.check_alive()
        self.rows = list(rows)
        self.total = max(int(total), 0)
        self.loading = loading
        self.pagination.set_total(self.total)

    def set_loading(self, loading: bool) -> None:
        self.check_alive()
        self.loading = loading

    def query(self) -> TableQuery:
        """The parameters of the data the table currently shows."""
        return TableQuery(
            page=self.pagination.page,
            page_size=self.pagination.page_size,
            sort_by=self.sorting.sort_by,
            filters=self.filtering.filters,
        )

    # User actions

    def toggle_sort(self, column_key: str) -> bool:
        """React to the activation of a column header.

        Returns:
            False if the column is not sortable and nothing changed.
        """
        self.check_alive()
        return self.sorting.toggle(self.registry[column_key])

    @property
    def all_selected(self) -> bool:
        """Every row of the current page is selected."""
        if not self.rows:
            return False
        page_ids = {self.identity(row) for row in self.rows}
        if self.selection.selection_count != len(page_ids):
            return False
        return all(self.selection.is_selected(row) for row in self.rows)

    def toggle_select_all(self) -> None:
        """Select the rows of the current page or clear the selection."""
        if self.all_selected:
            self.selection.clear_selection()
        else:
            self.selection.select_all(self.rows)

    def update_column_meta(
        self,
        key: str,
        updates: Optional[Mapping[str, Any]] = None,
        /,
        **kwargs: Any,
    ) -> ColumnMeta:
        self.check_alive()
        return self.registry.update_column_meta(key, updates, **kwargs)

    def toggle_column(self, key: str) -> bool:
        self.check_alive()
        return self.registry.toggle_column(key)

    def reset_columns(self) -> None:
        self.check_alive()
        self.registry.reset_to_default()

    # Derived view

    def view(self) -> TableView:
        """A render-ready snapshot of the table."""
        stg = self.settings
        sort_by = self.sorting.sort_by
        selected = self.selection.selected_items
        pg_view = PaginationView(
            pagination=self.pagination.pagination,
            page_range=self.pagination.page_range,
            page_numbers=self.pagination.page_numbers,
        )

        if self.loading:
            status, message = ViewStatus.LOADING, stg.loading_message
        elif not self.rows:
            status, message = ViewStatus.EMPTY, stg.empty_message
        else:
            status, message = ViewStatus.READY, ""

        columns: List[HeaderCell] = []
        rows: List[RowView] = []
        if status == ViewStatus.READY:
            visible = self.registry.visible_columns
            columns = [HeaderCell.from_schema(s, sort_by) for s in visible]
            for row in self.rows:
                rows.append(
                    RowView(
                        row=row,
                        row_id=self.identity(row),
                        selected=self.selection.is_selected(row),
                        cells=[
                            CellView.from_row(s, row, stg.placeholder)
                            for s in visible
                        ],
                    )
                )

        return TableView(
            status=status,
            message=message,
            columns=columns,
            rows=rows,
            pagination=pg_view,
            sort_by=sort_by,
            filters=self.filtering.filters,
            selected_items=selected,
            all_selected=self.all_selected,
            selection_text=(
                f"{count_text(len(selected), 'item')} selected"
                if selected
                else ""
            ),
            visible_count=self.registry.visible_count,
            total_count=self.registry.total_count,
        )

    # Export

    def export_data(
        self,
        options: Optional[ExportOptions] = None,
        rows: Optional[Sequence[Any]] = None,
    ) -> ExportData:
        """The payload for an export.

        Args:
            options: Selects the columns and provides the titles.
            rows: The rows to export; defaults to the rows of the current
                page.
        """
        self.check_alive()
        return build_export_data(
            self.registry,
            self.rows if rows is None else rows,
            options,
            self.filtering.filters,
        )

    async def export(
        self,
        fmt: Union[ExportFormat, str],
        options: Optional[ExportOptions] = None,
        rows: Optional[Sequence[Any]] = None,
    ) -> Any:
        """Export the table.

        Only one export runs at a time; a request made while another export
        is running is ignored and returns None. Errors raised by the encoder
        are propagated after the table is no longer busy.

        Returns:
            The result of `on_export` or, for built-in encoders, the path of
            the file that was written.
        """
        fmt = ExportFormat(fmt)
        options = options or ExportOptions()
        data = self.export_data(options, rows)
        logger.debug("Exporting %s as %s", describe(data), fmt)

        if self.on_export is not None:
            return await self.exporter.run(self.on_export, fmt, options, data)

        return await self.exporter.run(
            asyncio.to_thread,
            write_export,
            fmt,
            data,
            options,
            self.settings.export_directory,
        )

    @property
    def is_exporting(self) -> bool:
        return self.exporter.busy
