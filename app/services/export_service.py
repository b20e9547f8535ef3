"""Suggestion export (Markdown and PDF)"""

import unicodedata
from datetime import datetime
from typing import Any

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from app.models.suggestion import Suggestion
from app.services.status_display import status_badge

ROLE_LABELS = {"user": "Submitter", "assistant": "Assistant"}


def _format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def export_filename(suggestion: Suggestion, extension: str) -> str:
    """ASCII-only download name; the value is sent in a latin-1 header"""
    title = unicodedata.normalize("NFKD", suggestion.title).encode("ascii", "ignore").decode("ascii")
    slug = "".join(c if c.isalnum() else "-" for c in title.lower()).strip("-")
    slug = "-".join(part for part in slug.split("-") if part)[:60] or "suggestion"
    return f"{slug}-prd.{extension}"


def render_markdown(suggestion: Suggestion) -> str:
    """Render the suggestion and its PRD as Markdown"""
    lines = [
        f"# {suggestion.title}",
        "",
        f"- **Department:** {suggestion.department}",
        f"- **Status:** {status_badge(suggestion.status).label}",
        f"- **Created:** {_format_date(suggestion.created_at)}",
        f"- **Reviewed:** {_format_date(suggestion.reviewed_at)}",
        "",
        "## Description",
        "",
        suggestion.description,
        "",
    ]

    if suggestion.admin_notes:
        lines += ["## Admin notes", "", suggestion.admin_notes, ""]

    lines += ["## Product requirements", "", suggestion.prd or "", ""]

    conversation: list[dict[str, Any]] = suggestion.conversation or []
    if conversation:
        lines += ["## Conversation", ""]
        for message in conversation:
            role = ROLE_LABELS.get(message.get("role", ""), message.get("role", ""))
            lines.append(f"**{role}:** {message.get('content', '')}")
            for attachment in message.get("attachments") or []:
                lines.append(f"- [{attachment.get('name', '')}]({attachment.get('url', '')})")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


class SuggestionPDF(FPDF):
    """Single-suggestion PRD report

    Core fonts only cover latin-1, so text is replaced outside that range.
    """

    def __init__(self, suggestion: Suggestion):
        super().__init__()
        self.suggestion = suggestion
        self.set_auto_page_break(auto=True, margin=15)
        self.add_page()

    @staticmethod
    def clean(text: str | None) -> str:
        return (text or "").encode("latin-1", "replace").decode("latin-1")

    def footer(self):
        self.set_y(-15)
        self.set_font("helvetica", "I", 7)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")

    def section_header(self, title: str):
        self.set_font("helvetica", "B", 10)
        self.set_fill_color(30, 64, 175)
        self.set_text_color(255, 255, 255)
        self.cell(0, 6, self.clean(title), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_text_color(0, 0, 0)
        self.set_fill_color(255, 255, 255)
        self.ln(1)

    def paragraph(self, text: str | None):
        self.set_font("helvetica", "", 9)
        self.multi_cell(0, 5, self.clean(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

    def generate_report(self) -> bytes:
        s = self.suggestion

        self.set_font("helvetica", "B", 14)
        self.multi_cell(0, 8, self.clean(s.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        self.set_font("helvetica", "I", 8)
        meta = (
            f"Department: {s.department}    "
            f"Status: {status_badge(s.status).label}    "
            f"Reviewed: {_format_date(s.reviewed_at)}"
        )
        self.cell(0, 5, self.clean(meta), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

        self.section_header("Description")
        self.paragraph(s.description)

        if s.admin_notes:
            self.section_header("Admin notes")
            self.paragraph(s.admin_notes)

        self.section_header("Product requirements")
        self.paragraph(s.prd)

        return bytes(self.output())


def render_pdf(suggestion: Suggestion) -> bytes:
    return SuggestionPDF(suggestion).generate_report()
