"""Error taxonomy shared by services and the HTTP layer.

Services raise these exceptions; `main.py` registers a handler that turns
them into the `{success, message}` response envelope using the attached
status code.
"""


class ErrorMessages:
    INVALID_NAME = "Invalid name"
    INVALID_EMAIL = "Invalid email"
    INVALID_PASSWORD = "Invalid password"
    INVALID_STRING = "Invalid string"
    USER_EXISTS = "User already exists"
    EMAIL_TAKEN = "Email already in use"
    NOT_FOUND_USER = "User not found"
    NEED_ANSWER = "An answer is required"
    INVALID_OPTIONS_ARRAY = "Options must be an array of at least 2 strings"
    INVALID_TAGS_ARRAY = "Tags must be an array of strings"
    INVALID_QUESTIONS_ARRAY = "Questions must be an array of question ids"
    OPTIONS_MUST_INCLUDE_ANSWER = "Options must include the answer"
    QUESTION_ALREADY_EXISTS = "Question already exists"
    QUESTION_NOT_FOUND = "Question not found"
    FIELD_NOT_EDITABLE = "Field not editable"
    COLLECTION_ALREADY_EXISTS = "Collection already exists"
    COLLECTION_NOT_FOUND = "Collection not found"
    NEED_OWNERSHIP_OR_ADMIN = "You need to be the owner or an admin"
    WITHOUT_TOKEN = "Without token"
    INVALID_TOKEN = "Invalid Token"
    FORBIDDEN = "Forbidden"


class QuizApiError(Exception):
    """Base class for errors reported to API clients."""
    status_code = 400

    def __init__(self, *messages: str, status_code: int = None):
        super().__init__(", ".join(messages))
        self.messages = list(messages)
        if status_code is not None:
            self.status_code = status_code


class ValidationError(QuizApiError):
    """Malformed or missing input."""
    status_code = 400


class ConflictError(QuizApiError):
    """Duplicate name, email, question text or collection name."""
    status_code = 400


class NotFoundError(QuizApiError):
    status_code = 404


class AuthorizationError(QuizApiError):
    """The actor is neither the owner of the resource nor an admin."""
    status_code = 403


class AuthenticationError(QuizApiError):
    """Bad credentials or a missing/invalid bearer token."""
    status_code = 401
