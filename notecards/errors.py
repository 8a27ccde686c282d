class NotecardsError(Exception):
    """Base error. ``message`` is safe to show to the user."""

    message = "Server error, please try again."

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(NotecardsError):
    message = "All fields are required."


class DuplicateEmailError(NotecardsError):
    message = "This email is already in use."


class InvalidCredentialsError(NotecardsError):
    # same text for unknown email and wrong password
    message = "Invalid credentials."


class DatabaseUnavailable(NotecardsError):
    message = "Server error, please try again."
