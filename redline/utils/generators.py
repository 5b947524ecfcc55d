import re
from io import BytesIO
from typing import List, NamedTuple, Tuple

from docx import Document
from docx.enum.text import WD_PARAGRAPH_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from redline.config.section_keywords import default_title
from redline.models.resume import ResumeDraft, Section

_BULLET_RE = re.compile(r"^\s*(?:[-*•])\s+")
_BOLD_RE = re.compile(r"(\*\*.*?\*\*)")

ACCENT = RGBColor(115, 147, 179)


class Block(NamedTuple):
    kind: str  # name | contact | heading | entry | bullet | text
    text: str
    aside: str = ""


def _date_range(section: Section) -> str:
    dates = [d for d in (section.start_date, section.end_date) if d]
    return " - ".join(dates)


def draft_blocks(draft: ResumeDraft) -> List[Block]:
    """Flatten a draft into the ordered blocks both exporters render."""
    blocks: List[Block] = []
    contact = draft.contact
    if contact.name:
        blocks.append(Block("name", contact.name))
    details = [v for v in (contact.location, contact.phone, contact.email) if v]
    if details:
        blocks.append(Block("contact", " · ".join(details)))

    previous_type = None
    for section in draft.sections:
        if section.type != previous_type:
            blocks.append(Block("heading", default_title(section.type)))
            previous_type = section.type
        headline = ", ".join(v for v in (section.title, section.subtitle, section.location) if v)
        if headline:
            blocks.append(Block("entry", headline, _date_range(section)))
        for line in section.content.splitlines():
            if not line.strip():
                continue
            if _BULLET_RE.match(line):
                blocks.append(Block("bullet", _BULLET_RE.sub("", line).strip()))
            else:
                blocks.append(Block("text", line.strip()))
    return blocks


# ---- PDF ----

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 0.75 * inch

_PDF_STYLES = {
    "name": ("Helvetica-Bold", 18, 24),
    "contact": ("Helvetica", 10, 16),
    "heading": ("Helvetica-Bold", 12.5, 20),
    "entry": ("Helvetica-Bold", 10.5, 14),
    "bullet": ("Helvetica", 10.5, 13.5),
    "text": ("Helvetica", 10.5, 13.5),
}


def page_offsets(content_height: float, page_height: float) -> List[float]:
    """
    Vertical offsets of each page when a strip of content_height is cut into
    pages of page_height: always one page, then one more while content remains.
    """
    offsets = [0.0]
    remaining = content_height - page_height
    position = 0.0
    while remaining > 0:
        position += page_height
        offsets.append(position)
        remaining -= page_height
    return offsets


def layout_strip(blocks: List[Block], width: float, page_height: float) -> Tuple[List[tuple], float]:
    """
    Lay blocks out top-down on one tall strip. Returns (lines, height) where
    each line is (top, font, size, x, text, aside). A line never straddles a
    page boundary.
    """
    lines = []
    y = 0.0
    for block in blocks:
        font, size, leading = _PDF_STYLES[block.kind]
        indent = 12 if block.kind == "bullet" else 0
        text = block.text
        if block.kind == "heading":
            text = text.upper()
        wrapped = simpleSplit(text, font, size, width - indent - (90 if block.aside else 0)) or [""]
        for i, part in enumerate(wrapped):
            if (y % page_height) + leading > page_height:
                y += page_height - (y % page_height)
            prefix = "• " if block.kind == "bullet" and i == 0 else ""
            aside = block.aside if i == 0 else ""
            lines.append((y, font, size, indent, prefix + part, aside))
            y += leading
    return lines, y


def create_pdf(draft: ResumeDraft) -> BytesIO:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    usable_width = PAGE_WIDTH - 2 * MARGIN
    usable_height = PAGE_HEIGHT - 2 * MARGIN

    lines, height = layout_strip(draft_blocks(draft), usable_width, usable_height)
    for offset in page_offsets(height, usable_height):
        for top, font, size, indent, text, aside in lines:
            if not offset <= top < offset + usable_height:
                continue
            baseline = PAGE_HEIGHT - MARGIN - (top - offset) - size
            c.setFont(font, size)
            c.drawString(MARGIN + indent, baseline, text)
            if aside:
                c.setFont("Helvetica", size)
                c.drawRightString(PAGE_WIDTH - MARGIN, baseline, aside)
        c.showPage()

    c.save()
    buf.seek(0)
    return buf


# ---- DOCX ----

def add_hyperlink(paragraph, text, url):
    """
    Add a hyperlink to a paragraph.
    """
    part = paragraph.part
    r_id = part.relate_to(url, "http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink", is_external=True)

    hyperlink = OxmlElement('w:hyperlink')
    hyperlink.set(qn('r:id'), r_id)

    new_run = OxmlElement('w:r')
    rPr = OxmlElement('w:rPr')
    color = OxmlElement('w:color')
    color.set(qn('w:val'), "0000FF")
    rPr.append(color)
    u = OxmlElement('w:u')
    u.set(qn('w:val'), 'single')
    rPr.append(u)
    new_run.append(rPr)

    t = OxmlElement('w:t')
    t.text = text
    new_run.append(t)
    hyperlink.append(new_run)
    paragraph._p.append(hyperlink)
    return hyperlink


def process_text(paragraph, text, default_bold=False, default_color=None):
    """
    Add text to a paragraph, turning **bold** spans into bold runs.
    """
    for part in _BOLD_RE.split(text):
        if not part:
            continue
        bold = default_bold
        if part.startswith('**') and part.endswith('**') and len(part) > 4:
            part = part[2:-2]
            bold = True
        run = paragraph.add_run(part)
        run.bold = bold
        if default_color:
            run.font.color.rgb = default_color


def _add_entry_row(doc, left_text, right_text):
    # Role / date line: two-column table, 3/4 and 1/4
    table = doc.add_table(rows=1, cols=2)
    table.autofit = False
    for cell in table.columns[0].cells:
        cell.width = Inches(5.25)
    for cell in table.columns[1].cells:
        cell.width = Inches(1.75)

    # keep the row on one page
    for tr in table._tbl.tr_lst:
        tr.get_or_add_trPr().append(OxmlElement('w:cantSplit'))

    left_p = table.cell(0, 0).paragraphs[0]
    left_p.clear()
    process_text(left_p, left_text, default_bold=True, default_color=ACCENT)

    right_p = table.cell(0, 1).paragraphs[0]
    right_p.alignment = WD_PARAGRAPH_ALIGNMENT.RIGHT
    right_p.clear()
    process_text(right_p, right_text)


def create_docx(draft: ResumeDraft) -> BytesIO:
    doc = Document()

    for section in doc.sections:
        section.top_margin = Inches(0.5)
        section.bottom_margin = Inches(0.5)
        section.left_margin = Inches(0.75)
        section.right_margin = Inches(0.75)

    for block in draft_blocks(draft):
        if block.kind == "name":
            p = doc.add_heading(block.text, level=1)
            p.alignment = WD_PARAGRAPH_ALIGNMENT.CENTER
        elif block.kind == "contact":
            p = doc.add_paragraph()
            p.alignment = WD_PARAGRAPH_ALIGNMENT.CENTER
            email = draft.contact.email
            before, sep, after = block.text.partition(email) if email else (block.text, "", "")
            if before:
                p.add_run(before)
            if sep:
                add_hyperlink(p, email, f"mailto:{email}")
            if after:
                p.add_run(after)
        elif block.kind == "heading":
            p = doc.add_heading(block.text, level=2)
            p.alignment = WD_PARAGRAPH_ALIGNMENT.LEFT
        elif block.kind == "entry":
            _add_entry_row(doc, block.text, block.aside)
        elif block.kind == "bullet":
            p = doc.add_paragraph(style='List Bullet')
            p.paragraph_format.space_after = Pt(2)
            process_text(p, block.text)
        else:
            p = doc.add_paragraph()
            p.paragraph_format.space_after = Pt(6)
            process_text(p, block.text)

    file_stream = BytesIO()
    doc.save(file_stream)
    file_stream.seek(0)
    return file_stream
