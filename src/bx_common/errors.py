"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account (points)
  3xxx: Book
  4xxx: Exchange
  5xxx: Report
  9xxx: System

Validation and precondition errors are surfaced verbatim and never retried.
TransactionConflictError is the only error the transaction runner produces
itself, after its bounded retries are exhausted.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class UnauthorizedError(AppError):
    """Caller is authenticated but not the party allowed to act."""

    def __init__(self, detail: str = "You are not allowed to perform this action") -> None:
        super().__init__(1006, detail, 403)


class AdminRequiredError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Admin access required")
        self.code = 1007


# --- 2xxx: Account ---

class InsufficientPointsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient points. Required: {required}, Available: {available}",
            422,
        )
        self.required = required
        self.available = available


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


# --- 3xxx: Book ---

class BookNotFoundError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(3001, f"Book not found: {book_id}", 404)


class NotOwnerError(AppError):
    def __init__(self, detail: str = "Only the book owner can do this") -> None:
        super().__init__(3002, detail, 403)


class OwnBookRequestError(NotOwnerError):
    def __init__(self) -> None:
        super().__init__("You cannot request your own book")
        self.code = 3003
        self.http_status = 422


class BookNotAvailableError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(3004, f"Book is not available for exchange: {book_id}", 422)


# --- 4xxx: Exchange ---

class ExchangeNotFoundError(AppError):
    def __init__(self, exchange_id: str) -> None:
        super().__init__(4001, f"Exchange not found: {exchange_id}", 404)


class InvalidTransitionError(AppError):
    def __init__(self, entity: str, status: str, action: str) -> None:
        super().__init__(4002, f"Cannot {action} {entity} with status: {status}", 422)
        self.status = status


class ActiveExchangeExistsError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(
            4003, f"This book already has an active exchange request: {book_id}", 409
        )


class RepeatExchangeError(AppError):
    def __init__(self, window_days: int) -> None:
        super().__init__(
            4004,
            f"You cannot exchange with this user again within {window_days} days",
            422,
        )


class CircularExchangeError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4005,
            "Circular exchange pattern detected. Please wait before exchanging again.",
            422,
        )


# --- 5xxx: Report ---

class ReportNotFoundError(AppError):
    def __init__(self, report_id: str) -> None:
        super().__init__(5001, f"Report not found: {report_id}", 404)


class DuplicateReportError(AppError):
    def __init__(self) -> None:
        super().__init__(
            5002, "You have already reported this exchange with the same reason", 409
        )


class DescriptionTooLongError(AppError):
    def __init__(self, max_length: int) -> None:
        super().__init__(
            5003, f"Description must be {max_length} characters or less", 400
        )


class ReportRateLimitError(AppError):
    def __init__(self, max_reports: int, window_hours: int) -> None:
        super().__init__(
            5004,
            f"You have exceeded the maximum number of reports ({max_reports}) "
            f"in the last {window_hours} hours",
            429,
        )


class InvalidReportReasonError(AppError):
    def __init__(self, reason: str) -> None:
        super().__init__(5005, f"Invalid report reason: {reason}", 400)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class TransactionConflictError(AppError):
    def __init__(self) -> None:
        super().__init__(9003, "The operation conflicted with another update. Please try again.", 409)
