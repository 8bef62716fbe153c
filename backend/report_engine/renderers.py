"""
Resident Report Renderer

Turns a resident snapshot into a paginated PDF for one of the templates.
Sections come from the declarative template; photos and documents are
fetched from the blob store one at a time. A failure in any single field,
photo, document or the logo is drawn as a placeholder and never aborts
the render.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from records import ResidentSnapshot
from .assets import LogoResolver, load_image
from .fetcher import AssetUnavailable, BlobFetcher
from .formatting import PLACEHOLDER, display, format_date, format_datetime, format_long_datetime, format_time
from .layout import (
    PageLayout, Page, RectOp, TextOp, WatermarkOp, PAGE_WIDTH, PAGE_HEIGHT, FOOTER_HEIGHT,
    CONTENT_LEFT, CONTENT_WIDTH, FONT, FONT_BOLD,
)
from .templates import (
    TemplateSpec, Field, FieldPair, Block, Section, get_template,
)

logger = logging.getLogger(__name__)

HEADER_HEIGHT = 100

PHOTO_SLOTS = (
    ('photo_before_admission', 'Before Admission', 80),
    ('photo_after_admission', 'After Admission', 360),
)
PHOTO_WIDTH = 140
PHOTO_HEIGHT = 180

DOC_IMAGE_WIDTH = 480
DOC_IMAGE_HEIGHT = 180

DOCUMENT_BANNER = ("#FEF3C7", "#F59E0B", "#92400E")
EVENT_BANNER = ("#F0F9FF", "#3B82F6", "#1E40AF")


@dataclass
class ReportDocument:
    template: TemplateSpec
    pages: List[Page]
    pdf: bytes

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def text(self) -> str:
        return "\n".join(page.text for page in self.pages)


class ReportRenderer:
    """
    Render resident reports.

    Args:
        branding: dict from branding_config.get_branding()
        logo_resolver: anything with resolve_logo() -> Optional[bytes]
        fetcher: BlobFetcher used for photos and image documents
        clock: returns the "generated" timestamp, injectable for tests
    """

    def __init__(
        self,
        branding: dict,
        logo_resolver: LogoResolver,
        fetcher: BlobFetcher,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.branding = branding
        self.logo_resolver = logo_resolver
        self.fetcher = fetcher
        self.clock = clock

    async def render_pdf(self, resident: ResidentSnapshot, template: Union[str, TemplateSpec],
                         watermark: Optional[str] = None) -> bytes:
        document = await self.build(resident, template, watermark)
        return document.pdf

    async def build(self, resident: ResidentSnapshot, template: Union[str, TemplateSpec],
                    watermark: Optional[str] = None) -> ReportDocument:
        spec = get_template(template) if isinstance(template, str) else template
        generated_at = self.clock()
        layout = PageLayout(self.branding, spec.spacing)

        # Phase 1: content
        y = self._header(layout, spec, generated_at)
        y = self._title_bar(layout, spec, y)
        y = self._identity_banner(layout, resident, y)
        for section in spec.sections:
            y = await self._section(layout, resident, section, y)

        # Phase 2: page furniture, now that the total is known
        def stamp(page: Page, number: int, total: int):
            self._footer(page, number, total, generated_at)
            if watermark:
                page.add(WatermarkOp(watermark, opacity=self.branding["watermark_opacity"]))

        layout.stamp_footers(stamp)

        pdf = layout.write_pdf(
            title=f"{spec.title.title()} - {resident.identifier}",
            subject=spec.subject,
            author=self.branding["organization_name"],
        )
        logger.info(f"Rendered {spec.name} report for {resident.identifier}: {len(layout.pages)} page(s)")
        return ReportDocument(template=spec, pages=layout.pages, pdf=pdf)

    # =========================================================================
    # HEADER / BANNERS
    # =========================================================================

    def _header(self, layout: PageLayout, spec: TemplateSpec, generated_at: datetime) -> float:
        b = self.branding
        layout.rect(0, 0, PAGE_WIDTH, HEADER_HEIGHT, fill=b["primary_color"])
        layout.rect(40, 15, 70, 70, fill="#FFFFFF")

        logo = None
        try:
            logo = load_image(self.logo_resolver.resolve_logo(), "logo")
        except Exception as e:
            logger.warning(f"Logo resolver failed: {e}")
        if logo:
            layout.image(45, 20, 60, 60, logo)
        else:
            for i, word in enumerate(b["wordmark"][:2]):
                layout.text(40, 38 + i * 15, word, FONT_BOLD, 10, b["primary_color"], align="center", width=70)

        layout.text(130, 18, b["organization_name"], FONT_BOLD, 24, "#FFFFFF")
        for i, line in enumerate(b["subtitle_lines"][:2]):
            layout.text(130, 47 + i * 15, line, FONT, 11, b["header_text_color"])
        layout.text(
            300, 82, f"{spec.generated_label}: {format_long_datetime(generated_at)}",
            FONT, 8, b["header_text_color"], align="right", width=260,
        )
        return HEADER_HEIGHT + 10

    def _title_bar(self, layout: PageLayout, spec: TemplateSpec, y: float) -> float:
        b = self.branding
        layout.rect(CONTENT_LEFT, y, CONTENT_WIDTH, 35, fill=b["light_color"], stroke=b["primary_color"])
        layout.text(CONTENT_LEFT, y + 10, spec.title, FONT_BOLD, 16, b["primary_color"],
                    align="center", width=CONTENT_WIDTH)
        return y + 50

    def _identity_banner(self, layout: PageLayout, resident: ResidentSnapshot, y: float) -> float:
        b = self.branding
        layout.rect(30, y, 540, 80, fill="#FFFFFF", stroke=b["primary_color"], line_width=2)
        layout.text(45, y + 12, resident.display_name, FONT_BOLD, 18, b["primary_color"])
        layout.text(45, y + 37, f"Registration No: {display(resident.get('registration_no'))}", FONT, 11)
        layout.text(45, y + 54, f"Admission Date: {format_date(resident.get('admission_date'))}", FONT, 11)
        layout.text(
            300, y + 37,
            f"Age: {display(resident.get('age'))} years | Gender: {display(resident.get('gender'))}",
            FONT, 11,
        )
        layout.text(300, y + 54, f"Category: {display(resident.get('category'))}", FONT, 11)
        return y + 100

    def _footer(self, page: Page, number: int, total: int, generated_at: datetime):
        b = self.branding
        top = PAGE_HEIGHT - FOOTER_HEIGHT
        page.add(RectOp(0, top, PAGE_WIDTH, FOOTER_HEIGHT, b["light_color"], b["primary_color"]))
        page.add(TextOp(CONTENT_LEFT, top + 15, b["footer_title"], FONT_BOLD, 10, b["primary_color"],
                        align="center", width=CONTENT_WIDTH))
        page.add(TextOp(
            CONTENT_LEFT, top + 35,
            f"Page {number} of {total} | Generated: {format_date(generated_at)} at {format_time(generated_at)}",
            FONT, 8, b["primary_color"], align="center", width=CONTENT_WIDTH,
        ))

    # =========================================================================
    # SECTIONS
    # =========================================================================

    async def _section(self, layout: PageLayout, resident: ResidentSnapshot, section: Section, y: float) -> float:
        if section.when and not section.when(resident):
            return y
        y = layout.render_section_header(section.title, y)
        for item in section.items:
            if isinstance(item, Block):
                y = await self._block(layout, resident, item, y)
            elif isinstance(item, FieldPair):
                y = layout.render_field_pair(
                    item.left.label, self._value(item.left, resident),
                    item.right.label, self._value(item.right, resident),
                    y,
                )
            elif isinstance(item, Field):
                if item.when and not item.when(resident):
                    continue
                y = layout.render_field(item.label, self._value(item, resident), y,
                                        multiline=item.multiline, full_width=item.full_width)
        return y

    @staticmethod
    def _value(item: Field, resident: ResidentSnapshot) -> str:
        try:
            return item.value(resident)
        except Exception as e:
            logger.warning(f"Field '{item.label}' could not be formatted: {e}")
            return PLACEHOLDER

    async def _block(self, layout: PageLayout, resident: ResidentSnapshot, block: Block, y: float) -> float:
        if block.kind == 'photos':
            return await self._photos(layout, resident, y)
        if block.kind == 'documents':
            return await self._documents(layout, resident, y)
        if block.kind == 'care_events':
            return self._care_events(layout, resident, y)
        raise ValueError(f"Unknown block: {block.kind}")

    # =========================================================================
    # PHOTOS
    # =========================================================================

    async def _photos(self, layout: PageLayout, resident: ResidentSnapshot, y: float) -> float:
        b = self.branding
        y = layout.check_page_break(y, 220)
        for key, caption, x in PHOTO_SLOTS:
            layout.rect(x, y, PHOTO_WIDTH, PHOTO_HEIGHT, fill="#FFFFFF", stroke=b["border_color"])
            image = await self._fetch_image(resident.get(key), f"{caption.lower()} photo")
            if image is None:
                placeholder = "No photo" if not resident.get(key) else "Photo unavailable"
                layout.text(x, y + PHOTO_HEIGHT / 2 - 5, placeholder, FONT, 10, b["muted_color"],
                            align="center", width=PHOTO_WIDTH)
            else:
                layout.image(x + 5, y + 5, PHOTO_WIDTH - 10, PHOTO_HEIGHT - 10, image)
            layout.text(x, y + PHOTO_HEIGHT + 6, caption, FONT_BOLD, 10, b["primary_color"],
                        align="center", width=PHOTO_WIDTH)
        return y + 220

    async def _fetch_image(self, url: Optional[str], label: str):
        if not url:
            return None
        try:
            data = await self.fetcher.fetch_bytes(url)
        except AssetUnavailable as e:
            logger.warning(f"Could not load {label}: {e.reason}")
            return None
        return load_image(data, label)

    # =========================================================================
    # DOCUMENTS
    # =========================================================================

    async def _documents(self, layout: PageLayout, resident: ResidentSnapshot, y: float) -> float:
        documents = resident.documents
        if not documents:
            return layout.render_field("Uploaded Documents", "No documents uploaded", y, multiline=True)

        listing = ", ".join(
            f"{i}. {d.get('name') or 'Document'}"
            f"{' (' + d['type'] + ')' if d.get('type') else ''}"
            f" ({d.get('mime_type') or 'unknown'})"
            for i, d in enumerate(documents, 1)
        )
        y = layout.render_field("Uploaded Documents", listing, y, multiline=True)

        for document in documents:
            y = layout.check_page_break(y, 200)
            header = f"{document.get('name') or 'Document'} ({document.get('type') or 'Unknown'})"
            y = layout.render_banner(header, y, *DOCUMENT_BANNER)
            y = await self._document_body(layout, document, y)
            y += 10
        return y

    async def _document_body(self, layout: PageLayout, document: dict, y: float) -> float:
        mime = (document.get('mime_type') or '').lower()

        if mime.startswith('image/'):
            image = await self._fetch_image(document.get('file_path'), f"document '{document.get('name')}'")
            if image is None:
                return layout.render_field("Document Status", "Document unavailable", y, multiline=True)
            y = layout.check_page_break(y, DOC_IMAGE_HEIGHT + 20)
            layout.image(60, y, DOC_IMAGE_WIDTH, DOC_IMAGE_HEIGHT, image)
            return y + DOC_IMAGE_HEIGHT + 10

        if mime == 'application/pdf':
            return layout.render_field(
                "PDF Document", "PDF document available - content embedded separately", y, multiline=True,
            )

        return layout.render_field(
            "Document Content",
            f"Document of type {document.get('mime_type') or 'unknown'} is available but cannot be displayed inline",
            y, multiline=True,
        )

    # =========================================================================
    # CARE EVENTS
    # =========================================================================

    def _care_events(self, layout: PageLayout, resident: ResidentSnapshot, y: float) -> float:
        # Stored order, not date order
        for i, event in enumerate(resident.care_events, 1):
            y = layout.check_page_break(y, 150)
            y = layout.render_banner(f"Event {i}: {event.get('type') or 'General Care'}", y, *EVENT_BANNER)
            y = layout.render_field("Description", display(event.get('description')), y, multiline=True)
            y = layout.render_field_pair("Date", format_date(event.get('date')),
                                         "Doctor", display(event.get('doctor')), y)
            y = layout.render_field("Medications", display(event.get('medications')), y, multiline=True)
            y = layout.render_field_pair("Next Visit", format_date(event.get('next_visit')),
                                         "Status", display(event.get('status')), y)
            y = layout.render_field("Remarks", display(event.get('remarks')), y, multiline=True)
            y = layout.render_field_pair("Created By", display(event.get('created_by')),
                                         "Created At", format_datetime(event.get('created_at')), y)
            y += 10
        return y

