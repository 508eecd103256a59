"""Office document to PDF conversion cascade."""

from .base import ConversionStrategy, ProcessResult, run_process
from .cascade import ConversionCascade, default_strategies
from .libreoffice import ExportProfile, LibreOfficeStrategy, locate_soffice
from .office_automation import OfficeAutomationStrategy
from .presentation import PresentationLibraryStrategy
from .validation import validate_pdf

__all__ = [
    "ConversionCascade",
    "ConversionStrategy",
    "ExportProfile",
    "LibreOfficeStrategy",
    "OfficeAutomationStrategy",
    "PresentationLibraryStrategy",
    "ProcessResult",
    "default_strategies",
    "locate_soffice",
    "run_process",
    "validate_pdf",
]
