"""
Word service errors

Each error carries the HTTP status the router answers with and a single
message that is safe to show to the visitor.
"""


class WordError(Exception):
    """Base class for failures surfaced to the caller"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WordError):
    """Missing or malformed input (user-fixable)"""
    status_code = 400


class PayloadTooLargeError(ValidationError):
    """Avatar over the size limit"""
    status_code = 413


class ConflictError(WordError):
    """Duplicate term or duplicate visitor, terminal for this attempt"""
    status_code = 409


class StructureFullError(ConflictError):
    """Every layer up to the configured maximum is full"""


class AuthorizationError(WordError):
    """Client token does not own the word"""
    status_code = 403


class NotFoundError(WordError):
    status_code = 404


class DependencyError(WordError):
    """Record store or blob store failure"""
    status_code = 500


# Raised by the record store on unique constraint violations

class SlotTakenError(Exception):
    """Another live word already holds this (layer_index, slot_index)"""


class DuplicateTermError(Exception):
    """Another word already uses this term (case-insensitive)"""
