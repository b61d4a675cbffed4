"""PDF export of a rendered plot.

create_pdf() lays out the chart image, the list of models used (in the
canonical series order) and the acceptable-use notice of the data service.
The model list and the notice each start on a new page. PlotViewWidget
feeds it the browser-rendered chart and controller.included_model_names().
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Union

from PIL import Image as PILImage
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Image,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
)

from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "OCTS Plot from 1960 - 2100"
IMAGE_WIDTH_PT = 500

LEGAL_NOTICE_HEADING = "ACCEPTABLE USE POLICY AND CONDITIONS OF USE"

LEGAL_NOTICE = (
    "This Acceptable Use Policy and Conditions of Use (\"AUP\") defines the rules and conditions "
    "that govern your access to and use (including transmission, processing, and storage of data) "
    "of the resources and services (\"Services\") as granted by the department Data Analytics, "
    "Access and Applications (D3A) from the Steinbuch Centre for Computing (SCC) of Karlsruhe "
    "Institute of Technology (KIT), located at Hermann-von-Helmholtz-Platz 1, 76344 "
    "Eggenstein-Leopoldshafen (the \"Provider\") for the purpose of retrieving the ozone data and "
    "producing high-quality figures for the ozone assessment."
)

LEGAL_POINTS: list[str] = [
    "You shall only use the Services in a manner consistent with the purposes and limitations "
    "described above; you shall show consideration towards other users including by not causing "
    "harm to the Services; you have an obligation to collaborate in the resolution of issues "
    "arising from your use of the Services.",
    "You shall only use the Services for lawful purposes and not breach, attempt to breach, nor "
    "circumvent administrative or security controls.",
    "You shall respect intellectual property and confidentiality agreements.",
    "You shall protect your access credentials (e.g. passwords, private keys or multi-factor "
    "tokens); no intentional sharing is permitted.",
    "You shall keep your registered information correct and up to date.",
    "You shall promptly report known or suspected security breaches, credential compromise, or "
    "misuse to the security contact stated below; and report any compromised credentials to the "
    "relevant issuing authorities.",
    "Reliance on the Services shall only be to the extent specified by any applicable service "
    "level agreements listed below. Use without such agreements is at your own risk.",
    "Your personal data will be processed in accordance with the privacy statements referenced below.",
    "Your use of the Services may be restricted or suspended, for administrative, operational, or "
    "security reasons, without prior notice and without compensation.",
    "You shall provide appropriate acknowledgement and citation for your use of the "
    "resources/services and the original data as described in \"Data policies, references and "
    "acknowledgments for the O3as services and original data\".",
    "If you violate these rules, you may be liable for the consequences, which may include your "
    "account being suspended and a report being made to your home organisation or to law enforcement.",
]


def _chart_image(image_bytes: bytes) -> Image:
    """Scale the chart to IMAGE_WIDTH_PT keeping its aspect ratio."""
    with PILImage.open(io.BytesIO(image_bytes)) as img:
        width_px, height_px = img.size
    if width_px == 0 or height_px == 0:
        raise ValueError("Chart image is empty")
    height_pt = IMAGE_WIDTH_PT * height_px / width_px
    return Image(io.BytesIO(image_bytes), width=IMAGE_WIDTH_PT, height=height_pt)


def create_pdf(
    image_bytes: bytes,
    model_names: list[str],
    *,
    title: str = DEFAULT_TITLE,
    output: Optional[Union[str, Path]] = None,
) -> bytes:
    """Build the PDF document for a rendered plot.

    Args:
        image_bytes: Rendered chart as PNG (or any Pillow-readable raster) bytes.
        model_names: Models used in the plot, in canonical order.
        title: Document title.
        output: If set, the PDF is also written to this path.

    Returns:
        The PDF document as bytes.
    """
    styles = getSampleStyleSheet()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=title,
    )

    story = [
        Paragraph(title, styles["Title"]),
        Spacer(1, 0.2 * inch),
        _chart_image(image_bytes),
        PageBreak(),
        Paragraph("List of used models:", styles["Heading1"]),
        ListFlowable(
            [ListItem(Paragraph(name, styles["BodyText"])) for name in model_names],
            bulletType="bullet",
        ),
        PageBreak(),
        Paragraph(LEGAL_NOTICE_HEADING, styles["Heading1"]),
        Paragraph(LEGAL_NOTICE, styles["BodyText"]),
        Spacer(1, 0.1 * inch),
        ListFlowable(
            [ListItem(Paragraph(point, styles["BodyText"])) for point in LEGAL_POINTS],
            bulletType="1",
        ),
    ]
    doc.build(story)
    pdf = buffer.getvalue()

    if output is not None:
        Path(output).write_bytes(pdf)
        logger.info(f"Wrote PDF with {len(model_names)} models to {output}")
    return pdf
