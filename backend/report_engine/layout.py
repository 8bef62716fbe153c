"""
Page Layout for Resident Reports

A top-down vertical cursor over A4 pages. Drawing calls don't touch the PDF
directly: they append positioned operations to buffered pages. Once the whole
document is assembled (and the page total is known) footers are stamped on
every page, and only then is the PDF written.

Coordinates are in points measured from the top-left corner; conversion to
ReportLab's bottom-up space happens when an operation is drawn.
"""

import io
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .formatting import PLACEHOLDER

PAGE_WIDTH, PAGE_HEIGHT = A4

TOP_MARGIN = 50          # Cursor position on a fresh page
BOTTOM_MARGIN = 80       # Keeps content clear of the footer band
OPENING_REGION = 100     # No page break while the cursor is still this close to the top
FOOTER_HEIGHT = 60

CONTENT_LEFT = 40
CONTENT_WIDTH = 520
PAIR_RIGHT = 310
HALF_WIDTH = 250

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


# =============================================================================
# SPACING PROFILES
# =============================================================================

@dataclass(frozen=True)
class Spacing:
    field_height: float = 25
    field_gap: float = 5
    pair_advance: float = 30
    section_advance: float = 40
    section_height: float = 28
    line_height: float = 12
    label_width: float = 140
    pair_label_width: float = 110
    font_size: float = 9
    section_font_size: float = 12


DEFAULT_SPACING = Spacing()

# Print layout packs more onto a sheet
COMPACT_SPACING = Spacing(
    field_height=20,
    field_gap=3,
    pair_advance=23,
    section_advance=32,
    section_height=22,
    line_height=10,
    label_width=120,
    pair_label_width=95,
    font_size=8,
    section_font_size=10,
)


# =============================================================================
# DRAWING OPERATIONS
# =============================================================================

@dataclass
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    line_width: float = 1

    def draw(self, c: canvas.Canvas, page_height: float):
        c.setLineWidth(self.line_width)
        if self.fill:
            c.setFillColor(HexColor(self.fill))
        if self.stroke:
            c.setStrokeColor(HexColor(self.stroke))
        c.rect(self.x, page_height - self.y - self.height, self.width, self.height,
               stroke=1 if self.stroke else 0, fill=1 if self.fill else 0)


@dataclass
class TextOp:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 9
    color: str = "#000000"
    align: str = "left"      # left, center, right
    width: float = 0         # Used for center/right alignment

    def draw(self, c: canvas.Canvas, page_height: float):
        c.setFont(self.font, self.size)
        c.setFillColor(HexColor(self.color))
        baseline = page_height - self.y - self.size
        if self.align == "center":
            c.drawCentredString(self.x + self.width / 2, baseline, self.text)
        elif self.align == "right":
            c.drawRightString(self.x + self.width, baseline, self.text)
        else:
            c.drawString(self.x, baseline, self.text)


@dataclass
class ImageOp:
    """Image scaled to fit the box, aspect ratio kept, centered."""
    x: float
    y: float
    width: float
    height: float
    image: ImageReader

    def fitted(self):
        iw, ih = self.image.getSize()
        scale = min(self.width / iw, self.height / ih)
        w, h = iw * scale, ih * scale
        return self.x + (self.width - w) / 2, self.y + (self.height - h) / 2, w, h

    def draw(self, c: canvas.Canvas, page_height: float):
        x, y, w, h = self.fitted()
        c.drawImage(self.image, x, page_height - y - h, w, h, mask='auto')


@dataclass
class WatermarkOp:
    text: str
    color: str = "#9CA3AF"
    opacity: float = 0.08
    size: float = 96

    def draw(self, c: canvas.Canvas, page_height: float):
        c.saveState()
        c.setFillColor(HexColor(self.color))
        c.setFillAlpha(self.opacity)
        c.setFont(FONT_BOLD, self.size)
        c.translate(PAGE_WIDTH / 2, page_height / 2)
        c.rotate(45)
        c.drawCentredString(0, 0, self.text)
        c.restoreState()


# =============================================================================
# BUFFERED PAGES
# =============================================================================

@dataclass
class Page:
    number: int
    ops: list = field(default_factory=list)

    def add(self, op):
        self.ops.append(op)
        return op

    @property
    def texts(self) -> List[str]:
        return [op.text for op in self.ops if isinstance(op, (TextOp, WatermarkOp))]

    @property
    def text(self) -> str:
        return "\n".join(self.texts)

    @property
    def images(self) -> List[ImageOp]:
        return [op for op in self.ops if isinstance(op, ImageOp)]


def clip_text(text: str, font: str, size: float, width: float) -> str:
    """Single line that fits the width, ellipsized when it doesn't."""
    text = " ".join(text.split())
    if stringWidth(text, font, size) <= width:
        return text
    ellipsis = "..."
    while text and stringWidth(text + ellipsis, font, size) > width:
        text = text[:-1]
    return text.rstrip() + ellipsis


def value_text(value) -> str:
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    return text if text else PLACEHOLDER


class PageLayout:
    """
    Cursor-driven layout over buffered pages.

    Every render_* call takes the cursor position and returns the next one;
    page breaks happen inside the call when the block wouldn't fit.
    """

    def __init__(self, branding: dict, spacing: Spacing = DEFAULT_SPACING):
        self.branding = branding
        self.spacing = spacing
        self.page_height = PAGE_HEIGHT
        self.pages: List[Page] = []
        self.footers_stamped = False
        self.new_page()

    @property
    def current(self) -> Page:
        return self.pages[-1]

    @property
    def printable_bottom(self) -> float:
        return self.page_height - BOTTOM_MARGIN

    def new_page(self) -> Page:
        page = Page(number=len(self.pages) + 1)
        self.pages.append(page)
        return page

    # -------------------------------------------------------------------------
    # Raw drawing on the current page
    # -------------------------------------------------------------------------

    def rect(self, x, y, width, height, fill=None, stroke=None, line_width=1):
        return self.current.add(RectOp(x, y, width, height, fill, stroke, line_width))

    def text(self, x, y, text, font=FONT, size=None, color=None, align="left", width=0):
        return self.current.add(TextOp(
            x, y, text, font, size or self.spacing.font_size,
            color or self.branding["text_color"], align, width,
        ))

    def image(self, x, y, width, height, image: ImageReader):
        return self.current.add(ImageOp(x, y, width, height, image))

    # -------------------------------------------------------------------------
    # Layout primitives
    # -------------------------------------------------------------------------

    def check_page_break(self, y: float, required_space: float) -> float:
        if y + required_space > self.printable_bottom and y > OPENING_REGION:
            self.new_page()
            return TOP_MARGIN
        return y

    def render_field(self, label: str, value, y: float, multiline: bool = False,
                     full_width: bool = False) -> float:
        """
        Labeled value box. Multiline values wrap and grow the box; anything
        else is clipped to one line.
        """
        sp = self.spacing
        width = CONTENT_WIDTH if (full_width or multiline) else HALF_WIDTH
        value_width = width - sp.label_width - 10
        text = value_text(value)

        if not multiline:
            y = self.check_page_break(y, sp.field_height + 15)
            self._field_box(CONTENT_LEFT, y, width, sp.field_height, label, sp.label_width,
                            [clip_text(text, FONT, sp.font_size, value_width)])
            return y + sp.field_height + sp.field_gap

        lines = simpleSplit(text, FONT, sp.font_size, value_width) or [PLACEHOLDER]
        y = self.check_page_break(y, self._box_height(len(lines)) + 15)

        # Text longer than a page continues in another box on the next page
        while lines:
            room = self.printable_bottom - y
            fit = max(1, int((room - 10) // sp.line_height))
            chunk, lines = lines[:fit], lines[fit:]
            height = self._box_height(len(chunk))
            self._field_box(CONTENT_LEFT, y, width, height, label, sp.label_width, chunk)
            y += height + sp.field_gap
            if lines:
                self.new_page()
                y = TOP_MARGIN
        return y

    def render_field_pair(self, label_a: str, value_a, label_b: str, value_b, y: float) -> float:
        sp = self.spacing
        y = self.check_page_break(y, sp.field_height + 10)
        value_width = HALF_WIDTH - sp.pair_label_width - 10
        for x, label, value in ((CONTENT_LEFT, label_a, value_a), (PAIR_RIGHT, label_b, value_b)):
            clipped = clip_text(value_text(value), FONT, sp.font_size, value_width)
            self._field_box(x, y, HALF_WIDTH, sp.field_height, label, sp.pair_label_width, [clipped])
        return y + sp.pair_advance

    def render_section_header(self, title: str, y: float) -> float:
        sp = self.spacing
        y = self.check_page_break(y, 50)
        self.rect(30, y, 540, sp.section_height, fill=self.branding["light_color"],
                  stroke=self.branding["primary_color"])
        self.text(40, y + (sp.section_height - sp.section_font_size) / 2, title, FONT_BOLD,
                  sp.section_font_size, self.branding["primary_color"])
        return y + sp.section_advance

    def render_banner(self, text: str, y: float, fill: str, stroke: str, color: str,
                      height: float = 25) -> float:
        """Full-width one-line banner (document and care event headers)."""
        self.rect(CONTENT_LEFT, y, CONTENT_WIDTH, height, fill=fill, stroke=stroke)
        self.text(50, y + (height - 10) / 2, clip_text(text, FONT_BOLD, 10, CONTENT_WIDTH - 20),
                  FONT_BOLD, 10, color)
        return y + height + 5

    def _box_height(self, line_count: int) -> float:
        sp = self.spacing
        return max(sp.field_height, line_count * sp.line_height + 10)

    def _field_box(self, x, y, width, height, label, label_width, lines):
        sp = self.spacing
        self.rect(x, y, width, height, fill=self.branding["field_bg_color"],
                  stroke=self.branding["border_color"])
        pad = (sp.field_height - sp.font_size) / 2
        self.text(x + 8, y + pad, clip_text(f"{label}:", FONT_BOLD, sp.font_size, label_width - 12),
                  FONT_BOLD, sp.font_size, self.branding["primary_color"])
        for i, line in enumerate(lines):
            self.text(x + label_width, y + pad + i * sp.line_height, line, FONT, sp.font_size,
                      self.branding["text_color"])

    # -------------------------------------------------------------------------
    # Phase 2 and output
    # -------------------------------------------------------------------------

    def stamp_footers(self, stamp: Callable[[Page, int, int], None]):
        """Visit every buffered page with (page_number, total_pages)."""
        if self.footers_stamped:
            raise RuntimeError("Footers already stamped")
        total = len(self.pages)
        for page in self.pages:
            stamp(page, page.number, total)
        self.footers_stamped = True

    def write_pdf(self, title: str = "", subject: str = "", author: str = "") -> bytes:
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(title)
        c.setSubject(subject)
        c.setAuthor(author)
        for page in self.pages:
            for op in page.ops:
                op.draw(c, self.page_height)
            c.showPage()
        c.save()
        return buffer.getvalue()
