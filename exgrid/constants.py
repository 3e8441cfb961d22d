# Defaults shared by the slices and the settings model.
from typing import List, Literal

DEFAULT_PAGE_SIZE = 20
DEFAULT_PAGE_SIZE_OPTIONS: List[int] = [10, 20, 50, 100]
MAX_PAGE_SIZE = 1000

# Width of the page-number window shown by pagination controls.
MAX_VISIBLE_PAGES = 5

# Shown in place of missing or empty cell values.
PLACEHOLDER = "-"

EMPTY_MESSAGE = "No data available"
LOADING_MESSAGE = "Loading data..."

# Rows are identified by this field unless the host supplies another
# identity function.
DEFAULT_ID_FIELD = "id"

DataType = Literal["string", "number", "date", "boolean"]
