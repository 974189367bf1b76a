"""Error types raised by the ladder services and rendered by the app."""

RECORD_NOT_FOUND = 'Record not found'
RECORD_NOT_SAVED = 'Record could not be saved. Please check data and try again.'
CHALLENGE_ALREADY_COMPLETED = 'Challenge can only be updated once'


class LatterError(Exception):
    status_code = 400
    default_message = RECORD_NOT_SAVED

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = list(details or [])

    def to_dict(self):
        payload = {'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class NotFoundError(LatterError):
    status_code = 404
    default_message = RECORD_NOT_FOUND


class ValidationError(LatterError):
    """A required field is missing or invalid; nothing was saved."""


class AlreadyCompletedError(LatterError):
    """The challenge already has a result and cannot be scored again."""
    default_message = CHALLENGE_ALREADY_COMPLETED
