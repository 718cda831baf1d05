"""
Engine error taxonomy.

Every error carries a stable machine-readable ``code`` plus a human message.
The HTTP layer maps them to JSON bodies via ``QuoteEngineError.to_dict()``.
"""


class QuoteEngineError(Exception):
    code = "ENGINE_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnknownWorkCategory(QuoteEngineError):
    """Catalog miss on a work category; never silently defaulted."""
    code = "UNKNOWN_WORK_CATEGORY"
    status_code = 400

    def __init__(self, work_category: str):
        super().__init__(
            f"Unknown work category '{work_category}'",
            {"work_category": work_category},
        )
        self.work_category = work_category


class NotFound(QuoteEngineError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(
            f"{entity} '{entity_id}' not found",
            {"entity": entity, "entity_id": str(entity_id)},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidState(QuoteEngineError):
    code = "INVALID_STATE"
    status_code = 409


class ValidationError(QuoteEngineError):
    code = "VALIDATION_ERROR"
    status_code = 400
