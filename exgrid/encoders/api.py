"""Built-in encoders for exported tables.

Each encoder turns an `ExportData` payload into the bytes of a file. The
bytes are only written to disk once encoding has finished, so a failed
export never leaves a partial file behind.
"""

import logging
import os
from typing import Callable, Dict

from exgrid.encoders.csv_encoder import encode_csv
from exgrid.encoders.pdf_encoder import encode_pdf
from exgrid.encoders.xl_encoder import encode_excel
from exgrid.export import ExportData, ExportFormat, ExportOptions

logger = logging.getLogger(__name__)

Encoder = Callable[[ExportData, ExportOptions], bytes]

encoders: Dict[ExportFormat, Encoder] = {
    ExportFormat.CSV: encode_csv,
    ExportFormat.EXCEL: encode_excel,
    ExportFormat.PDF: encode_pdf,
}


def get_encoder(fmt: str) -> Encoder:
    """Locate the encoder for a format.

    Raises:
        ValueError: The format is not one of `csv`, `excel` or `pdf`.
    """
    return encoders[ExportFormat(fmt)]


def export_path(
    fmt: str, options: ExportOptions, directory: str = "."
) -> str:
    """The path of the file written for these options."""
    return os.path.join(
        directory, options.filename + ExportFormat(fmt).extension
    )


def write_export(
    fmt: str,
    data: ExportData,
    options: ExportOptions,
    directory: str = ".",
    path: str = "",
) -> str:
    """Encode the payload and write it to a file.

    Args:
        fmt: The format of the file.
        data: The columns and rows to export.
        options: Title, file name and page setup.
        directory: Where to place the file when no path is given.
        path: Explicit location of the file.

    Returns:
        The path of the file that was written.
    """
    encoder = get_encoder(fmt)
    content = encoder(data, options)

    path = path or export_path(fmt, options, directory)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)

    logger.debug("Exported %d rows to %s", len(data.rows), path)
    return path
