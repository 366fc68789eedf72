"""ScholarFund exception hierarchy."""


class ScholarFundError(Exception):
    """Base exception for all ScholarFund errors."""

    def __init__(self, message: str = "", code: str = "SCHOLARFUND_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(ScholarFundError):
    """Raised when input is malformed: bad enum, non-positive amount, missing field."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="VALIDATION_ERROR")


class ReferenceNotFoundError(ScholarFundError):
    """Raised when a referenced client or treatment center is missing or inactive."""

    def __init__(self, message: str = "Referenced record not found or inactive"):
        super().__init__(message, code="REFERENCE_NOT_FOUND")


class NotFoundError(ScholarFundError):
    """Raised when the record an operation targets does not exist."""

    def __init__(self, message: str = "Record not found"):
        super().__init__(message, code="NOT_FOUND")


class ForbiddenError(ScholarFundError):
    """Raised when the acting principal lacks the required role."""

    def __init__(self, message: str = "Super Admin role required"):
        super().__init__(message, code="FORBIDDEN")


class AlreadyApprovedError(ScholarFundError):
    """Raised when a principal tries to approve the same scholarship twice."""

    def __init__(self, message: str = "You have already approved this scholarship"):
        super().__init__(message, code="ALREADY_APPROVED")


class AlreadyFinalError(ScholarFundError):
    """Raised when a scholarship can no longer accept approvals."""

    def __init__(self, message: str = "Scholarship already has all required approvals"):
        super().__init__(message, code="ALREADY_FINAL")


class IdentifierConflictError(ScholarFundError):
    """Raised when a generated scholarship identifier collides with a concurrent insert."""

    def __init__(self, message: str = "Scholarship identifier already in use, please retry"):
        super().__init__(message, code="IDENTIFIER_CONFLICT")


class DuplicateEmailError(ScholarFundError):
    """Raised when a user e-mail is already registered."""

    def __init__(self, message: str = "A user with this email already exists"):
        super().__init__(message, code="DUPLICATE_EMAIL")


class StoreUnavailableError(ScholarFundError):
    """Raised when the database cannot be reached or the transaction was aborted."""

    def __init__(self, message: str = "Data store temporarily unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class AuditRecordingError(ScholarFundError):
    """Raised only in strict audit mode when an audit event cannot be written."""

    def __init__(self, message: str = "Audit event could not be recorded"):
        super().__init__(message, code="AUDIT_FAILURE")
