"""Output generation for events and plans (text, PDF)."""

from chorewheel.output.description import PlanFormatter, describe
from chorewheel.output.pdf_generator import PDFGenerator

__all__ = [
    "PDFGenerator",
    "PlanFormatter",
    "describe",
]
