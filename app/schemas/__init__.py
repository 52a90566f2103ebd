from .analyze import AnalyzeRequest, AnalyzeResponse, ContactSummary, DeleteResponse

__all__ = [
    "AnalyzeRequest",
    "AnalyzeResponse",
    "ContactSummary",
    "DeleteResponse",
]
