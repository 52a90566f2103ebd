from .analysis import Analysis, AnalysisStatus
from .contact import Contact, ContactStatus

__all__ = [
    "Analysis",
    "AnalysisStatus",
    "Contact",
    "ContactStatus",
]
