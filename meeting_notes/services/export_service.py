"""
Render a meeting bundle to PDF (reportlab) or Word (python-docx) and store it
in the exports directory
"""
import io
import logging
import os
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional
from xml.sax.saxutils import escape

from docx import Document
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from meeting_notes.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Meeting"


@dataclass
class ExportBlock:
    text: str
    kind: str = "body"  # body | item | meta


@dataclass
class ExportSection:
    heading: str
    blocks: List[ExportBlock] = field(default_factory=list)


@dataclass
class ExportDocument:
    title: str
    generated: str
    sections: List[ExportSection] = field(default_factory=list)


def _field(action: Any, name: str) -> Any:
    if isinstance(action, Mapping):
        return action.get(name)
    return getattr(action, name, None)


def build_document(
    title: Optional[str],
    transcript: Optional[str],
    notes: Optional[str],
    actions: Optional[Iterable[Any]],
    generated_at: Optional[datetime] = None,
) -> ExportDocument:
    """
    Lay out the sections shared by both formats. Sections with no content
    are left out rather than emitted as empty headings.
    """
    generated_at = generated_at or datetime.now()
    doc = ExportDocument(
        title=(title or "").strip() or DEFAULT_TITLE,
        generated=f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
    )

    if transcript and transcript.strip():
        doc.sections.append(ExportSection("Transcript", [ExportBlock(transcript.strip())]))

    if notes and notes.strip():
        doc.sections.append(ExportSection("Notes", [ExportBlock(notes.strip())]))

    actions = list(actions or [])
    if actions:
        section = ExportSection("Action Items")
        for index, action in enumerate(actions, start=1):
            assignee = _field(action, "assignee") or "Unassigned"
            due = _field(action, "due_date") or "Not set"
            section.blocks.append(ExportBlock(f"{index}. {_field(action, 'action_text') or ''}", "item"))
            section.blocks.append(ExportBlock(f"Assignee: {assignee} | Due: {due}", "meta"))
        doc.sections.append(section)

    return doc


# ─── Renderers ───

def _pdf_markup(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


def render_pdf(doc: ExportDocument) -> bytes:
    styles = getSampleStyleSheet()
    generated_style = ParagraphStyle(
        "Generated", parent=styles["Normal"], fontSize=10, textColor=colors.gray, alignment=TA_CENTER
    )
    block_styles = {
        "body": ParagraphStyle("Body", parent=styles["Normal"], fontSize=11, leading=14),
        "item": ParagraphStyle("Item", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=11),
        "meta": ParagraphStyle("Meta", parent=styles["Normal"], fontSize=10, spaceAfter=6),
    }

    story = [
        Paragraph(_pdf_markup(doc.title), styles["Title"]),
        Paragraph(_pdf_markup(doc.generated), generated_style),
        Spacer(1, 12),
    ]
    for section in doc.sections:
        story.append(Paragraph(_pdf_markup(section.heading), styles["Heading2"]))
        for block in section.blocks:
            story.append(Paragraph(_pdf_markup(block.text), block_styles[block.kind]))
        story.append(Spacer(1, 12))

    buffer = io.BytesIO()
    SimpleDocTemplate(buffer, pagesize=letter, title=doc.title).build(story)
    return buffer.getvalue()


def render_docx(doc: ExportDocument) -> bytes:
    document = Document()
    document.add_heading(doc.title, level=1)
    document.add_paragraph(doc.generated)

    for section in doc.sections:
        document.add_heading(section.heading, level=2)
        for block in section.blocks:
            paragraph = document.add_paragraph()
            run = paragraph.add_run(block.text)
            run.bold = block.kind == "item"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


RENDERERS = {
    "pdf": render_pdf,
    "docx": render_docx,
}


# ─── Storage ───

def export_filename_stem(title: Optional[str]) -> str:
    stem = re.sub(r"[\s/\\]+", "_", (title or "").strip())
    return stem or DEFAULT_TITLE


def write_export(
    content: bytes,
    title: Optional[str],
    extension: str,
    export_dir: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> str:
    """
    Store rendered bytes as <title>_<epoch ms>.<ext>. The file is created
    exclusively; a taken name moves the stamp forward one millisecond.
    """
    export_dir = export_dir or settings.EXPORT_DIR
    os.makedirs(export_dir, exist_ok=True)

    stem = export_filename_stem(title)
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    while True:
        filename = f"{stem}_{stamp}.{extension}"
        try:
            with open(os.path.join(export_dir, filename), "xb") as f:
                f.write(content)
        except FileExistsError:
            stamp += 1
            continue
        logger.info(f"Export written: {filename} ({len(content)} bytes)")
        return filename


def export_meeting(
    extension: str,
    title: Optional[str],
    transcript: Optional[str],
    notes: Optional[str],
    actions: Optional[Iterable[Any]],
    export_dir: Optional[str] = None,
) -> str:
    """Render and store one export, returning the generated filename"""
    doc = build_document(title, transcript, notes, actions)
    content = RENDERERS[extension](doc)
    return write_export(content, doc.title, extension, export_dir=export_dir)
