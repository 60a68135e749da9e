"""PDF generation for chore plans.

This module creates printable PDF calendars showing:
- The day-by-day grid of job assignees
- A summary page with the event description and per-teammate totals
"""

from io import BytesIO
from pathlib import Path
from typing import Union

from chorewheel.domain.models import EventDefinition, SchedulePlan
from chorewheel.output.description import PlanFormatter

# Job column colors (RGB tuples, 0-1 scale), cycled by job position
JOB_COLORS = [
    (0.4, 0.7, 0.4),  # Green
    (0.4, 0.4, 0.8),  # Blue
    (0.8, 0.6, 0.2),  # Orange
    (0.7, 0.4, 0.7),  # Purple
    (0.6, 0.6, 0.6),  # Gray
]
ROW_SHADE = (0.95, 0.95, 0.95)


def _load_canvas():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable PDF calendars for chore plans.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(event, plan, "chores.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        row_height: float = 20,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.row_height = row_height
        self.formatter = PlanFormatter()

    def generate(
        self,
        event: EventDefinition,
        plan: SchedulePlan,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate the PDF calendar and save it to a file.

        Args:
            event: The event the plan belongs to.
            plan: The plan to render.
            output_path: Path to save the PDF.
            include_summary: Whether to add the summary page.
        """
        canvas, pagesize = _load_canvas()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, event, plan, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        event: EventDefinition,
        plan: SchedulePlan,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate the PDF and return it as a bytes buffer."""
        canvas, pagesize = _load_canvas()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, event, plan, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, event: EventDefinition, plan: SchedulePlan, include_summary: bool) -> None:
        self._draw_calendar_pages(c, event, plan)
        if include_summary:
            self._draw_summary_page(c, event, plan)

    def _draw_calendar_pages(self, c, event: EventDefinition, plan: SchedulePlan) -> None:
        """Draw the day-by-day assignment grid, paginated."""
        header_height = 60
        footer_height = 30
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / self.row_height) - 1)

        date_col_width = 110
        jobs_width = self.page_width - 2 * self.margin - date_col_width
        job_col_width = jobs_width / max(1, len(event.jobs))

        days = list(plan.days)
        total_pages = max(1, (len(days) + rows_per_page - 1) // rows_per_page)

        for page_index in range(total_pages):
            page_days = days[page_index * rows_per_page : (page_index + 1) * rows_per_page]
            self._draw_header(c, event, plan)

            # Column headings
            y = self.page_height - self.margin - header_height
            c.setFont("Helvetica-Bold", 9)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 4, y + 6, "Date")
            for i, job in enumerate(event.jobs):
                x = self.margin + date_col_width + i * job_col_width
                c.setFillColorRGB(*JOB_COLORS[i % len(JOB_COLORS)])
                c.rect(x, y, job_col_width, self.row_height, fill=1, stroke=0)
                c.setFillColorRGB(0, 0, 0)
                c.drawString(x + 4, y + 6, f"{job.name} ({job.slots_per_day}/day)"[:40])

            # Rows
            c.setFont("Helvetica", 8)
            for row, day in enumerate(page_days):
                y -= self.row_height
                if row % 2 == 0:
                    c.setFillColorRGB(*ROW_SHADE)
                    c.rect(
                        self.margin,
                        y,
                        self.page_width - 2 * self.margin,
                        self.row_height,
                        fill=1,
                        stroke=0,
                    )
                c.setFillColorRGB(0, 0, 0)
                c.drawString(self.margin + 4, y + 6, day.date.strftime("%a %b %d, %Y"))
                for i, job in enumerate(event.jobs):
                    x = self.margin + date_col_width + i * job_col_width
                    names = ", ".join(sorted(day.get_assignees(job.name)))
                    max_chars = max(4, int(job_col_width / 4.5))
                    c.drawString(x + 4, y + 6, names[:max_chars])

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_index + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_header(self, c, event: EventDefinition, plan: SchedulePlan) -> None:
        """Draw page header with event name and date span."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Chore Schedule - {event.name}",
        )

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"{event.start_date.strftime('%B %d, %Y')} to "
            f"{event.end_date.strftime('%B %d, %Y')}  ({len(plan)} days, seed {plan.seed})",
        )

    def _draw_summary_page(self, c, event: EventDefinition, plan: SchedulePlan) -> None:
        """Draw the description text and per-teammate totals."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Schedule Summary - {event.name}",
        )

        y = self.page_height - self.margin - 50
        c.setFont("Helvetica", 9)
        for line in self.formatter.describe(event).splitlines():
            if y < self.margin + 20:
                break
            c.drawString(self.margin, y, line)
            y -= 12

        metrics = plan.fairness_metrics(event)
        totals = metrics.totals_per_teammate
        x = self.page_width / 2 + 20
        y = self.page_height - self.margin - 50
        c.setFont("Helvetica-Bold", 12)
        c.drawString(x, y, "Assignments per Teammate")
        y -= 18

        max_total = max(totals.values(), default=0) or 1
        bar_max_width = self.page_width - self.margin - x - 120
        c.setFont("Helvetica", 9)
        for teammate, total in totals.items():
            if y < self.margin + 20:
                break
            c.setFillColorRGB(0, 0, 0)
            c.drawString(x, y, str(teammate)[:18])
            c.setFillColorRGB(0.4, 0.6, 0.8)
            c.rect(x + 90, y - 2, bar_max_width * total / max_total, 10, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(x + 95 + bar_max_width * total / max_total, y, str(total))
            y -= 15

        c.showPage()
