import csv
import io
from typing import Any

from exgrid.export import ExportData, ExportOptions


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_csv(data: ExportData, options: ExportOptions) -> bytes:
    """Comma separated values with a header row.

    The title and the page setup do not apply to this format. The result is
    encoded as UTF-8 with a byte order mark so that spreadsheet applications
    detect the encoding.
    """
    headers, rows = data.to_matrix()
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_text(v) for v in row])
    return buffer.getvalue().encode("utf-8-sig")
