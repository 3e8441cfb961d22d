import io
import logging
from typing import Any, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A3, A4, landscape, letter, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from exgrid.export import ExportData, ExportOptions

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "A3": A3, "Letter": letter}
HEADER_FILL = colors.Color(66 / 255, 66 / 255, 66 / 255)
ALTERNATE_FILL = colors.Color(245 / 255, 245 / 255, 245 / 255)
MARGIN = 10 * mm


def _initial_styles() -> List[Any]:
    """Styles shared by every exported table.

    The header row is dark with white text; data rows alternate between
    white and a light grey.
    """
    return [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ALTERNATE_FILL]),
        ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("BOX", (0, 0), (-1, -1), 0.25, colors.grey),
        ("LEFTPADDING", (0, 0), (-1, -1), 3),
        ("RIGHTPADDING", (0, 0), (-1, -1), 3),
    ]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return str(value)


def encode_pdf(data: ExportData, options: ExportOptions) -> bytes:
    """A PDF document with the title, the generation time and the table.

    Columns share the width of the page equally; long values wrap inside
    their cell.
    """
    size = PAGE_SIZES[options.page_size]
    if options.orientation == "landscape":
        size = landscape(size)
    else:
        size = portrait(size)

    sample = getSampleStyleSheet()
    title_style = ParagraphStyle("ExportTitle", sample["Title"], fontSize=16)
    subtitle_style = ParagraphStyle(
        "ExportSubtitle", sample["Normal"], fontSize=11
    )
    meta_style = ParagraphStyle(
        "ExportMeta", sample["Normal"], fontSize=8, textColor=colors.grey
    )
    cell_style = ParagraphStyle("ExportCell", sample["Normal"], fontSize=8)
    head_style = ParagraphStyle(
        "ExportHead",
        cell_style,
        fontName="Helvetica-Bold",
        textColor=colors.white,
    )

    story: List[Any] = []
    if data.title:
        story.append(Paragraph(escape(data.title), title_style))
    if data.subtitle:
        story.append(Paragraph(escape(data.subtitle), subtitle_style))
    story.append(
        Paragraph(
            "Generated: "
            + data.generated_at.strftime("%Y-%m-%d %H:%M:%S"),
            meta_style,
        )
    )
    story.append(Spacer(1, 4 * mm))

    headers, rows = data.to_matrix()
    table_data: List[List[Any]] = [
        [Paragraph(escape(h), head_style) for h in headers]
    ]
    for values in rows:
        table_data.append(
            [Paragraph(escape(_text(v)), cell_style) for v in values]
        )

    if headers:
        width = (size[0] - 2 * MARGIN) / len(headers)
        table = Table(
            table_data, colWidths=[width] * len(headers), repeatRows=1
        )
        table.setStyle(TableStyle(_initial_styles()))
        story.append(table)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=size,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=data.title or options.filename,
    )
    doc.build(story)
    logger.debug("PDF with %d rows created", len(data.rows))
    return buffer.getvalue()
