from meadpilot.models.document import StoredDocument

__all__ = [
    "StoredDocument",
]
