# pranveda/core/pdf.py
import io
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def _wrap_line(text: str, max_chars: int = 95) -> list[str]:
    text = (text or "").replace("\r", "")
    lines_out: list[str] = []
    for raw_line in text.split("\n") or [""]:
        line = raw_line.strip()
        if not line:
            lines_out.append("")
            continue
        while len(line) > max_chars:
            cut = line.rfind(" ", 0, max_chars)
            if cut <= 0:
                cut = max_chars
            lines_out.append(line[:cut].strip())
            line = line[cut:].strip()
        lines_out.append(line)
    return lines_out


def render_wellness_report(report: dict[str, Any]) -> bytes:
    """
    Draw the weekly wellness report onto A4 pages.

    `report` is the JSON report produced by the AI service:
    user, period, stats and (optionally) insights.
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    y = height - 60

    def new_page():
        nonlocal y
        c.showPage()
        y = height - 60

    def section(title: str, lines: list[str]):
        nonlocal y
        if y < 100:
            new_page()
        c.setFont("Helvetica-Bold", 13)
        c.setFillColor(colors.black)
        c.drawString(40, y, title)
        y -= 18
        c.setFont("Helvetica", 10)
        for line in lines:
            for chunk in _wrap_line(line):
                if chunk:
                    c.drawString(48, y, chunk)
                y -= 13
                if y < 60:
                    new_page()
                    c.setFont("Helvetica", 10)
        y -= 8

    user = report.get("user", {})
    period = report.get("period", {})
    stats = report.get("stats", {})
    insights = report.get("insights") or {}

    # Header band
    c.setFillColorRGB(0.29, 0.2, 0.55)
    c.rect(0, height - 80, width, 80, fill=True, stroke=False)
    c.setFont("Helvetica-Bold", 18)
    c.setFillColor(colors.white)
    c.drawString(40, height - 50, "PranVeda Weekly Wellness Report")
    y = height - 110

    section(
        "Profile",
        [
            f"Name: {user.get('display_name') or 'PranVeda member'}",
            f"Member since: {user.get('join_date', '-')}",
            f"Period: {period.get('start_date', '-')} to {period.get('end_date', '-')}",
        ],
    )

    streaks = stats.get("current_streaks", {})
    section(
        "Activity",
        [
            f"Total sessions: {stats.get('total_sessions', 0)}",
            f"Meditation sessions: {stats.get('meditation_sessions', 0)}",
            f"Workout sessions: {stats.get('workout_sessions', 0)}",
            f"Total minutes: {stats.get('total_minutes', 0)}",
            f"Meditation streak: {streaks.get('meditation', 0)} days",
            f"Workout streak: {streaks.get('workout', 0)} days",
            f"Badges unlocked: {stats.get('achievements_count', 0)}",
        ],
    )

    if insights:
        section("Summary", [insights.get("summary", "")])
        if insights.get("achievements"):
            section("Highlights", [f"- {item}" for item in insights["achievements"]])
        if insights.get("recommendations"):
            section("Recommendations", [f"- {item}" for item in insights["recommendations"]])
        if insights.get("mood_trend"):
            section("Mood trend", [str(insights["mood_trend"]).capitalize()])

    c.setFont("Helvetica-Oblique", 8)
    c.setFillColor(colors.grey)
    c.drawString(40, 30, f"Generated {report.get('generated_at', '')}")

    c.showPage()
    c.save()
    return buffer.getvalue()
