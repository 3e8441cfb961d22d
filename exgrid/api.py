from exgrid.accessor import (  # noqa: F401
    MISSING,
    Accessor,
    Derived,
    FieldPath,
    as_accessor,
    resolve_accessor,
)
from exgrid.column import (  # noqa: F401
    CellWarning,
    ColumnMeta,
    ColumnSchema,
    FilterDescriptor,
    WarningSeverity,
)
from exgrid.encoders.api import get_encoder, write_export  # noqa: F401
from exgrid.export import (  # noqa: F401
    ExportColumn,
    ExportData,
    ExportFormat,
    ExportOptions,
    ExportRunner,
    build_export_data,
    default_filename,
)
from exgrid.fi_op import (  # noqa: F401
    FilterOperator,
    filter_op_registry,
    operators_for_type,
)
from exgrid.filter import (  # noqa: F401
    Filter,
    FilterBuilder,
    FilterOption,
    FilterSlice,
    between,
    contains,
    eq,
    in_array,
    is_not_null,
    is_null,
    to_filter_request,
)
from exgrid.memory import MemorySource  # noqa: F401
from exgrid.pagination import (  # noqa: F401
    PaginatedResponse,
    Pagination,
    PaginationRequest,
    PaginationSlice,
    build_api_request,
    calculate_total_pages,
    create_default_pagination,
    from_paginated_response,
    get_page_numbers,
    get_page_range_text,
    validate_page,
)
from exgrid.query import TableQuery  # noqa: F401
from exgrid.registry import ColumnRegistry  # noqa: F401
from exgrid.selection import SelectionSlice, default_identity  # noqa: F401
from exgrid.settings import GridSettings  # noqa: F401
from exgrid.slice import GridScopeError  # noqa: F401
from exgrid.sort import (  # noqa: F401
    SortBy,
    SortDirection,
    SortSlice,
    next_sort_for,
    to_sort_request,
)
from exgrid.table import TableState  # noqa: F401
from exgrid.tabs import TabConfig, TabOwnership, TabStrip  # noqa: F401
from exgrid.view import (  # noqa: F401
    CellView,
    HeaderCell,
    PaginationView,
    RowView,
    TableView,
    ViewStatus,
)
