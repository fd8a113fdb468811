import re
from html import unescape
from io import BytesIO
from typing import List, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer
from xml.sax.saxutils import escape as xml_escape

from ..core.config import settings

_BLOCK_TAGS = re.compile(r"</?(?:p|tr|table|section|header|article|ul|ol|div|br)\b[^>]*>", re.I)
_HEADING = re.compile(r"<h([123])[^>]*>(.*?)</h\1>", re.I | re.S)
_LIST_ITEM = re.compile(r"<li[^>]*>", re.I)
_CELL_BREAK = re.compile(r"</t[hd]>\s*<t[hd][^>]*>", re.I)
_ANY_TAG = re.compile(r"<[^>]+>")


def html_to_blocks(content: str) -> List[Tuple[str, str]]:
    """Flatten rendered contract HTML into ``(kind, text)`` blocks.

    ``kind`` is ``h1``/``h2``/``h3`` for headings, ``li`` for list items and
    ``p`` for everything else.
    """
    marked = _HEADING.sub(lambda m: f"\n@@h{m.group(1)}@@{m.group(2)}\n", content or "")
    marked = _LIST_ITEM.sub("\n@@li@@", marked)
    marked = _CELL_BREAK.sub(" ", marked)
    marked = _BLOCK_TAGS.sub("\n", marked)
    marked = _ANY_TAG.sub("", marked)

    blocks: List[Tuple[str, str]] = []
    for raw in marked.split("\n"):
        line = unescape(raw).strip()
        if not line:
            continue
        kind = "p"
        for tag in ("h1", "h2", "h3", "li"):
            marker = f"@@{tag}@@"
            if line.startswith(marker):
                kind, line = tag, line[len(marker):].strip()
                break
        if line:
            blocks.append((kind, line))
    return blocks


def generate_pdf(title: str, content: str) -> bytes:
    """Generate the contract PDF using ReportLab Platypus.

    Output is byte-for-byte stable for the same ``title`` and ``content``.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=settings.COMPANY_NAME,
        invariant=1,
    )
    muted = colors.HexColor("#4b5563")

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="ContractTitle", parent=styles["Heading1"], fontName="Times-Bold", fontSize=16, alignment=1, spaceAfter=4))
    styles.add(ParagraphStyle(name="ContractSection", parent=styles["Heading2"], fontName="Times-Bold", fontSize=12, spaceBefore=10, spaceAfter=4))
    styles.add(ParagraphStyle(name="ContractParty", parent=styles["Heading3"], fontName="Times-Bold", fontSize=10, spaceBefore=6, textColor=muted))
    styles.add(ParagraphStyle(name="ContractBody", parent=styles["Normal"], fontName="Times-Roman", fontSize=10, leading=13))
    styles.add(ParagraphStyle(name="ContractItem", parent=styles["ContractBody"], leftIndent=12, bulletIndent=2))

    style_for = {
        "h1": styles["ContractTitle"],
        "h2": styles["ContractSection"],
        "h3": styles["ContractParty"],
        "li": styles["ContractItem"],
        "p": styles["ContractBody"],
    }

    story = []
    for kind, text in html_to_blocks(content):
        if kind == "li":
            story.append(Paragraph(xml_escape(text), style_for[kind], bulletText="•"))
        else:
            story.append(Paragraph(xml_escape(text), style_for[kind]))
        if kind == "h1":
            story.append(Spacer(1, 2 * mm))
    if not story:
        story.append(Paragraph(xml_escape(title or "Contract"), styles["ContractTitle"]))

    doc.build(story)
    return buffer.getvalue()
