"""Error taxonomy shared by the store, the level sessions and the HTTP layer.

Every error carries the HTTP status the API answers with; the application
factory registers a single handler that renders them as JSON.
"""


class ChronosError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = list(details or [])

    def to_dict(self):
        payload = {'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class TeamNotFound(ChronosError):
    status_code = 404
    default_message = 'Team not found. Please start from the home page.'


class LevelNotFound(ChronosError):
    status_code = 404
    default_message = 'Level not found'


class ValidationError(ChronosError):
    status_code = 400
    default_message = 'Validation failed'


class AnswerFormatError(ChronosError):
    """Input rejected before grading; the question is not consumed."""
    status_code = 400
    default_message = 'Please enter an answer'


class GameNotStarted(ChronosError):
    status_code = 409
    default_message = 'The game has not started for this team'


class LevelBlocked(ChronosError):
    status_code = 409
    default_message = 'This level is not playable right now'

    def __init__(self, reason, message=None):
        super().__init__(message)
        self.reason = reason

    def to_dict(self):
        payload = super().to_dict()
        payload['reason'] = self.reason
        return payload


class AttemptFinished(ChronosError):
    status_code = 409
    default_message = 'This level attempt is already finished'


class StoreCommitError(ChronosError):
    status_code = 503
    default_message = 'Failed to save progress. Please try again.'


class GameTimerExpired(ChronosError):
    status_code = 403
    default_message = "Time's up! The game has ended."
