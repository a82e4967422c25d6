import io
import re
import zipfile
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

BRAND = colors.HexColor('#1e40af')


def slugify(name: str) -> str:
    # only [a-z0-9-] so names can never form paths inside the archive
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return slug or "student"


def report_filename(result) -> str:
    return f"career-report-{slugify(result.user.name)}.pdf"


def render_result_pdf(result) -> bytes:
    """Render one AssessmentResult as a career report PDF."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=40, leftMargin=40, topMargin=40, bottomMargin=40,
                            title="Career Guidance Report")
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ReportTitle', parent=styles['Heading1'], fontSize=18, textColor=BRAND,
                                 spaceAfter=12, alignment=1)
    heading_style = ParagraphStyle('ReportHeading', parent=styles['Heading2'], fontSize=14, textColor=BRAND,
                                   spaceAfter=8, spaceBefore=12)
    normal = styles['Normal']

    profile = result.career_profile or {}
    completed = result.completed_at.strftime('%B %d, %Y') if result.completed_at else ''
    story = [
        Paragraph("Career Guidance Report", title_style),
        Paragraph(f"<b>Student:</b> {escape(result.user.name)} ({escape(result.user.email)})", normal),
        Paragraph(f"<b>Completed:</b> {completed}", normal),
        Paragraph(f"<b>Experience gained:</b> {result.experience_gained} XP", normal),
        Spacer(1, 8),
        Paragraph("Personality Type", heading_style),
        Paragraph(escape(str(profile.get('dominantType', '')).title()), normal),
        Paragraph("Key Strengths", heading_style),
    ]
    for s in profile.get('strengths', []):
        story.append(Paragraph(f"&bull; {escape(s)}", normal))

    story.append(Paragraph("Recommended Careers", heading_style))
    rows = [["Career", "Description", "Match"]]
    for c in profile.get('recommendedCareers', []):
        rows.append([c.get('title', ''), c.get('description', ''), f"{c.get('matchPercentage', 0)}%"])
    table = Table(rows, colWidths=[150, 270, 60])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cbd5e1')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    story.append(table)

    story.append(Paragraph("Suggested Study Areas", heading_style))
    for area in profile.get('suggestedStudyAreas', []):
        story.append(Paragraph(f"&bull; {escape(area)}", normal))

    story.append(Paragraph("Your Responses", heading_style))
    for i, r in enumerate(result.responses or [], start=1):
        story.append(Paragraph(f"<b>{i}. {escape(r.get('question', ''))}</b>", normal))
        story.append(Paragraph(f"{escape(r.get('answer', ''))} <i>({escape(r.get('category', ''))})</i>", normal))
        story.append(Spacer(1, 4))

    doc.build(story)
    return buffer.getvalue()


def render_results_zip(results) -> bytes:
    """Bundle one PDF per result into a ZIP archive."""
    memory_file = io.BytesIO()
    used = set()
    with zipfile.ZipFile(memory_file, 'w', zipfile.ZIP_DEFLATED) as zf:
        for result in results:
            name = report_filename(result)
            if name in used:
                stem = f"career-report-{slugify(result.user.name)}-{result.user_id}"
                name, n = f"{stem}.pdf", 2
                while name in used:
                    name, n = f"{stem}-{n}.pdf", n + 1
            used.add(name)
            zf.writestr(name, render_result_pdf(result))
    return memory_file.getvalue()


def bulk_filename(today=None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"career-reports-bulk-{today.isoformat()}.zip"
