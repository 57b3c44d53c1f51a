"""Custom exception hierarchy for sentence-quiz."""


class SentenceQuizError(Exception):
    """Base exception for all sentence-quiz errors."""


class ValidationError(SentenceQuizError):
    """Invalid input (blank text, missing owner, bad reorder set)."""


class EntityNotFoundError(SentenceQuizError):
    """Category or sentence doesn't exist in the loaded collection."""


class StoreError(SentenceQuizError):
    """A remote store call failed."""


class DatabaseError(StoreError):
    """Schema version mismatch, connection failure."""


class RemoteWriteError(SentenceQuizError):
    """Insert, update or delete against the store failed."""


class RemoteReadError(SentenceQuizError):
    """Loading an owner's rows from the store failed."""


class NoContentError(SentenceQuizError):
    """Quiz requested over a category without sentences."""


class QuizStateError(SentenceQuizError):
    """Quiz transition not allowed from the current state."""


class AuthenticationError(SentenceQuizError):
    """Unknown account or wrong password."""


class ConfigError(SentenceQuizError):
    """Malformed settings file."""
