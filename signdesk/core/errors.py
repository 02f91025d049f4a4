class SignDeskError(Exception):
    """Base class for document lifecycle errors."""


class NotFound(SignDeskError):
    pass


class Unauthorized(SignDeskError):
    pass


class CorruptAttachment(SignDeskError):
    """Raised when a persisted attachment or collection cannot be decoded."""


class ValidationFailed(SignDeskError):
    """Pre-commit check failed in the signing flow; the message is shown to the user."""


class IdentityFormatInvalid(ValidationFailed):
    pass


class InvalidSessionState(SignDeskError):
    pass
