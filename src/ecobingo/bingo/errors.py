"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` so clients can branch
without parsing messages, plus the HTTP status the API layer renders it with.
"""

from __future__ import annotations


class BingoError(Exception):
    """Base class for all errors surfaced to callers."""

    code = "BINGO_ERROR"
    status_code = 400
    default_message = "Bingo request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BingoError):
    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Validation error"


class NotFound(BingoError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ItemNotFound(NotFound):
    code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Bingo item with ID {item_id} not found")


class GameNotFound(NotFound):
    code = "GAME_NOT_FOUND"
    default_message = "No bingo game found for user"


class NoEasyItemAvailable(NotFound):
    code = "NO_EASY_ITEM_AVAILABLE"
    default_message = "No easy bingo items available to complete"


class ItemNotOnBoard(BingoError):
    code = "ITEM_NOT_ON_BOARD"
    status_code = 400

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Bingo item {item_id} is not on the player's board")


class Unauthenticated(BingoError):
    code = "UNAUTHENTICATED"
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(BingoError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Not authorized"


class EmailNotVerified(Forbidden):
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Email verification required"


class Conflict(BingoError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Conflict"


class GameAlreadyComplete(Conflict):
    code = "GAME_ALREADY_COMPLETE"
    default_message = "Game is already completed"


class InsufficientCatalog(Conflict):
    code = "INSUFFICIENT_CATALOG"

    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"Not enough bingo items to create a board (need at least {required}, have {available})"
        )


class TransientStoreError(BingoError):
    """Store timeout or connection failure. Safe for the caller to retry."""

    code = "TRANSIENT_STORE_ERROR"
    status_code = 503
    default_message = "Storage temporarily unavailable, try again"
