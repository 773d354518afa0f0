"""
PDF exports for the CoachPro club manager.

Builds the printable convocation sheet and the post-match report with
ReportLab. The club logo is downloaded once per export; if it cannot be
fetched the header is printed without it.
"""
import io
import logging
import re
from typing import List, Optional, Tuple

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import EventType, Match, Player, Squad
from ..utils.constants import CLUB_LOGO_URL, CLUB_NAME, CLUB_SUBTITLE
from ..utils.time_utils import fmt_mmss

logger = logging.getLogger(__name__)

PRIMARY = colors.Color(16 / 255, 185 / 255, 129 / 255)  # emerald 500
PRIMARY_LIGHT = colors.Color(240 / 255, 253 / 255, 244 / 255)
DARK = colors.Color(30 / 255, 41 / 255, 59 / 255)
MUTED = colors.Color(100 / 255, 100 / 255, 100 / 255)
LOGO_TIMEOUT_SECONDS = 5

EVENT_LABELS = {
    EventType.GOAL: "Golo",
    EventType.SUBSTITUTION: "Substituição",
    EventType.CARD_YELLOW: "Cartão amarelo",
    EventType.CARD_RED: "Cartão vermelho",
}


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "club": ParagraphStyle(
            "Club", parent=base["Heading1"], fontName="Helvetica",
            fontSize=22, leading=26, textColor=PRIMARY, alignment=TA_LEFT,
        ),
        "subtitle": ParagraphStyle(
            "Subtitle", parent=base["Normal"], fontSize=12, leading=14, textColor=MUTED,
        ),
        "title": ParagraphStyle(
            "Title", parent=base["Heading2"], fontName="Helvetica",
            fontSize=18, leading=22, textColor=DARK, spaceBefore=8, spaceAfter=8,
        ),
        "body": ParagraphStyle("Body", parent=base["Normal"], fontSize=11, leading=15),
        "notes_heading": ParagraphStyle(
            "NotesHeading", parent=base["Normal"], fontName="Helvetica-Bold",
            fontSize=10, textColor=PRIMARY, spaceBefore=10,
        ),
        "notes": ParagraphStyle("Notes", parent=base["Normal"], fontSize=10, leading=13),
        "footer": ParagraphStyle("Footer", parent=base["Normal"], fontSize=8, textColor=colors.grey),
    }


def _escape(text: Optional[str]) -> str:
    return (text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class PdfService:
    """Renders convocation and match report PDFs as bytes."""

    def __init__(self, club_name: str = CLUB_NAME, logo_url: Optional[str] = CLUB_LOGO_URL):
        self.club_name = club_name
        self.logo_url = logo_url

    # ------------------------------------------------------------------
    # Shared layout
    # ------------------------------------------------------------------
    def fetch_logo(self) -> Optional[bytes]:
        """Download the club logo, returning None when it is unavailable."""
        if not self.logo_url:
            return None
        try:
            response = requests.get(self.logo_url, timeout=LOGO_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Could not load logo for PDF: %s", e)
            return None
        return response.content or None

    def _header(self, styles: dict) -> list:
        text = [
            Paragraph(_escape(self.club_name), styles["club"]),
            Paragraph(CLUB_SUBTITLE, styles["subtitle"]),
        ]
        logo = self.fetch_logo()
        if not logo:
            return text
        try:
            image = Image(io.BytesIO(logo), width=20 * mm, height=20 * mm)
        except Exception as e:  # ReportLab raises assorted errors for unreadable images
            logger.warning("Logo could not be decoded, printing header without it: %s", e)
            return text
        table = Table([[image, text]], colWidths=[25 * mm, None])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ]))
        return [table]

    def _footer(self, canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.Color(150 / 255, 150 / 255, 150 / 255))
        canvas.drawString(
            14 * mm, 10 * mm,
            f"Documento gerado automaticamente por {self.club_name} Manager",
        )
        canvas.restoreState()

    def _build(self, story: list) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4,
            leftMargin=14 * mm, rightMargin=14 * mm, topMargin=15 * mm, bottomMargin=20 * mm,
        )
        doc.build(story, onFirstPage=self._footer, onLaterPages=self._footer)
        return buffer.getvalue()

    @staticmethod
    def _grid(rows: List[list], col_widths: List[float]) -> Table:
        table = Table(rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, PRIMARY_LIGHT]),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]))
        return table

    # ------------------------------------------------------------------
    # Convocation
    # ------------------------------------------------------------------
    @staticmethod
    def convocation_filename(match: Match, squad: Squad) -> str:
        opponent = re.sub(r"\s+", "_", match.opponent)
        return f"Convocatoria_{squad.name}_vs_{opponent}.pdf"

    def generate_convocation_pdf(
        self, match: Match, squad: Squad, players: List[Player]
    ) -> Tuple[bytes, str]:
        """
        Render the convocation sheet.

        Args:
            match: The fixture
            squad: Squad playing it
            players: Convoked athletes

        Returns:
            Tuple of (PDF bytes, download file name)
        """
        styles = _styles()
        story = self._header(styles)
        story.append(Paragraph(f"CONVOCATÓRIA - {_escape(squad.name.upper())}", styles["title"]))

        details = [
            f"<b>Adversário:</b> {_escape(match.opponent)}",
            f"<b>Data/Hora:</b> {_escape(match.date)} às {_escape(match.time)}",
            f"<b>Local:</b> {_escape(match.location)}",
        ]
        if match.player_kit or match.goalkeeper_kit:
            kit_parts = []
            if match.player_kit:
                kit_parts.append(f"Jogadores: {_escape(match.player_kit)}")
            if match.goalkeeper_kit:
                kit_parts.append(f"GR: {_escape(match.goalkeeper_kit)}")
            details.append(f"<b>Equipamentos:</b> {' | '.join(kit_parts)}")
        story.extend(Paragraph(line, styles["body"]) for line in details)
        story.append(Spacer(1, 8 * mm))

        ordered = sorted(players, key=Player.jersey_sort_key)
        rows = [["#", "Nome Completo", "Nome Camisola"]]
        rows.extend([str(p.jersey_number), p.name, p.jersey_name or "-"] for p in ordered)
        story.append(self._grid(rows, [15 * mm, 100 * mm, 60 * mm]))

        if match.notes:
            story.append(Paragraph("OBSERVAÇÕES:", styles["notes_heading"]))
            story.append(Paragraph(_escape(match.notes).replace("\n", "<br/>"), styles["notes"]))

        return self._build(story), self.convocation_filename(match, squad)

    # ------------------------------------------------------------------
    # Match report
    # ------------------------------------------------------------------
    def generate_match_report_pdf(
        self, match: Match, squad: Squad, players: List[Player]
    ) -> Tuple[bytes, str]:
        """Render the post-match report: goals, events and minutes per player."""
        styles = _styles()
        data = match.game_data
        names = {p.id: p.name for p in players}
        story = self._header(styles)
        story.append(Paragraph(
            f"RELATÓRIO DE JOGO - {_escape(squad.name.upper())}", styles["title"]
        ))

        goals = sum(1 for e in data.events if e.type == EventType.GOAL) if data else 0
        story.extend([
            Paragraph(f"<b>Adversário:</b> {_escape(match.opponent)} ({_escape(match.location)})", styles["body"]),
            Paragraph(f"<b>Data/Hora:</b> {_escape(match.date)} às {_escape(match.time)}", styles["body"]),
            Paragraph(f"<b>Golos marcados:</b> {goals}", styles["body"]),
        ])
        if data:
            story.append(Paragraph(
                f"<b>Formação:</b> {_escape(data.formation)} | <b>Tempo:</b> {fmt_mmss(data.timer)}",
                styles["body"],
            ))
        story.append(Spacer(1, 6 * mm))

        if data and data.events:
            rows = [["Min.", "Evento", "Atleta", "Sai"]]
            for event in data.events:
                rows.append([
                    f"{event.minute}'",
                    EVENT_LABELS[event.type],
                    names.get(event.player_id, event.player_id),
                    names.get(event.player_out_id, event.player_out_id or "") if event.type == EventType.SUBSTITUTION else "",
                ])
            story.append(self._grid(rows, [15 * mm, 40 * mm, 70 * mm, 55 * mm]))
            story.append(Spacer(1, 6 * mm))

        minutes = data.player_minutes if data else {}
        rows = [["#", "Atleta", "Minutos"]]
        for player in sorted(players, key=Player.jersey_sort_key):
            rows.append([str(player.jersey_number), player.name, str(minutes.get(player.id, 0))])
        story.append(self._grid(rows, [15 * mm, 120 * mm, 40 * mm]))

        opponent = re.sub(r"\s+", "_", match.opponent)
        return self._build(story), f"Relatorio_{squad.name}_vs_{opponent}.pdf"
