import io
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from attrs import define, field
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.properties import PageSetupProperties
from openpyxl.worksheet.worksheet import Worksheet

from exgrid.export import ExportData, ExportOptions

logger = logging.getLogger(__name__)

SHEET_TITLE = "Sheet1"
MIN_COLUMN_WIDTH = 8
MAX_COLUMN_WIDTH = 60

_PAPER_SIZES = {
    "A4": Worksheet.PAPERSIZE_A4,
    "A3": Worksheet.PAPERSIZE_A3,
    "Letter": Worksheet.PAPERSIZE_LETTER,
}


def _cell_value(value: Any) -> Any:
    """Convert a value to something openpyxl can store in a cell.

    Datetimes lose their time zone, which Excel cannot represent.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.replace(tzinfo=None)
        return value
    if value is None or isinstance(
        value, (str, int, float, bool, Decimal, date)
    ):
        return value
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return str(value)


@define
class XlTableWriter:
    """Writes an exported table to a workbook.

    The sheet starts with the title and the subtitle (if any) followed by an
    empty row, then the header row and one row for each data row.

    Attributes:
        data: The columns and rows to write.
        options: Title and page setup.
        workbook: The workbook being written.
        worksheet: The sheet that receives the table.
        crt_row: The next row to write (1-based).
        column_widths: Widest text seen in each column.
    """

    data: ExportData
    options: ExportOptions
    workbook: Workbook = field(factory=Workbook, init=False)
    worksheet: Worksheet = field(default=None, init=False)
    crt_row: int = field(default=1, init=False)
    column_widths: Dict[int, int] = field(factory=dict, init=False)

    def __attrs_post_init__(self) -> None:
        self.worksheet = self.workbook.active
        self.worksheet.title = SHEET_TITLE

    @property
    def col_count(self) -> int:
        return len(self.data.columns)

    def setup_page(self) -> None:
        """Orientation, paper size and fit-to-width printing."""
        sht = self.worksheet
        if self.options.orientation == "landscape":
            sht.page_setup.orientation = sht.ORIENTATION_LANDSCAPE
        else:
            sht.page_setup.orientation = sht.ORIENTATION_PORTRAIT
        sht.page_setup.paperSize = _PAPER_SIZES[self.options.page_size]
        sht.print_options.horizontalCentered = True
        sht.page_setup.fitToWidth = 1
        sht.page_setup.fitToHeight = 0
        props = sht.sheet_properties
        if props.pageSetUpPr is None:
            props.pageSetUpPr = PageSetupProperties(fitToPage=True)
        else:
            props.pageSetUpPr.fitToPage = True

    def write_title(self, text: str, size: int) -> None:
        cell = self.worksheet.cell(row=self.crt_row, column=1, value=text)
        cell.font = Font(bold=True, size=size)
        if self.col_count > 1:
            self.worksheet.merge_cells(
                start_row=self.crt_row,
                start_column=1,
                end_row=self.crt_row,
                end_column=self.col_count,
            )
        self.crt_row += 1

    def write_header(self) -> None:
        side = Side(style="thin", color="000000")
        border = Border(left=side, top=side, right=side, bottom=side)
        fill = PatternFill(
            fill_type="solid", start_color="FF424242", end_color="FF424242"
        )
        font = Font(bold=True, color="FFFFFFFF")
        for c, heading in enumerate(self.data.headers, start=1):
            cell = self.worksheet.cell(
                row=self.crt_row, column=c, value=heading
            )
            cell.font = font
            cell.fill = fill
            cell.border = border
            cell.alignment = Alignment(horizontal="center", vertical="center")
            self.track_width(c, heading)
        self.worksheet.freeze_panes = self.worksheet.cell(
            row=self.crt_row + 1, column=1
        )
        self.crt_row += 1

    def write_rows(self) -> None:
        _, rows = self.data.to_matrix()
        for values in rows:
            for c, value in enumerate(values, start=1):
                value = _cell_value(value)
                cell = self.worksheet.cell(
                    row=self.crt_row, column=c, value=value
                )
                if isinstance(value, str) and value.startswith("="):
                    cell.data_type = "s"
                self.track_width(c, value)
            self.crt_row += 1

    def track_width(self, column: int, value: Any) -> None:
        if value is None:
            return
        self.column_widths[column] = max(
            self.column_widths.get(column, 0), len(str(value))
        )

    def apply_widths(self) -> None:
        for c in range(1, self.col_count + 1):
            width = self.column_widths.get(c, 0) + 2
            width = min(max(width, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
            letter = get_column_letter(c)
            self.worksheet.column_dimensions[letter].width = width

    def generate(self) -> Workbook:
        self.setup_page()
        if self.data.title:
            self.write_title(self.data.title, 14)
        if self.data.subtitle:
            self.write_title(self.data.subtitle, 11)
        if self.data.title or self.data.subtitle:
            self.crt_row += 1
        self.write_header()
        self.write_rows()
        self.apply_widths()
        return self.workbook


def encode_excel(data: ExportData, options: ExportOptions) -> bytes:
    """An Excel workbook with a single sheet holding the table."""
    workbook = XlTableWriter(data=data, options=options).generate()
    buffer = io.BytesIO()
    workbook.save(buffer)
    logger.debug("Workbook with %d rows created", len(data.rows))
    return buffer.getvalue()
