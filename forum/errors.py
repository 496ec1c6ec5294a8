"""
Errors raised by the topic service, and the fixed message catalogs.
"""

AUTHENTICATION_ERROR = "Unauthenticated!"
NO_AUTHORIZATION_ERROR = "You are not authorized to perform this action."
TOPIC_REMOVED_ERROR = "The topic has been removed."
CATEGORY_REMOVED_ERROR = "The category has been removed."
CATEGORY_ARCHIVED_ERROR = "The category is archived, no new topics can be created."
MESSAGE_REMOVED_ERROR = "The message has been removed."
TASK_REMOVED_ERROR = "The task has been removed."

TOPIC_DELETE_RESULT = "Topic deleted successfully."
TOPIC_ARCHIVE_RESULT = "Topic archived successfully."
TOPIC_UNARCHIVE_RESULT = "Topic unarchived successfully."


class ForumError(Exception):
    """Base exception for all forum service errors."""
    message = "Forum error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class AuthenticationError(ForumError):
    """Raised when the caller is not authenticated."""
    message = AUTHENTICATION_ERROR


class NoAuthorizationError(ForumError):
    """Raised when the caller may not act on the record."""
    message = NO_AUTHORIZATION_ERROR


class TopicRemovedError(ForumError):
    """Raised when a referenced topic does not exist."""
    message = TOPIC_REMOVED_ERROR


class CategoryRemovedError(ForumError):
    """Raised when a referenced category does not exist."""
    message = CATEGORY_REMOVED_ERROR


class CategoryArchivedError(ForumError):
    """Raised when creating a topic in an archived category."""
    message = CATEGORY_ARCHIVED_ERROR


class MessageRemovedError(ForumError):
    """Raised when a referenced message does not exist."""
    message = MESSAGE_REMOVED_ERROR


class TaskRemovedError(ForumError):
    """Raised when a referenced task does not exist."""
    message = TASK_REMOVED_ERROR
