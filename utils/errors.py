# utils/errors.py


class RosterError(Exception):
    """Base class for recoverable roster errors. `message` is shown to the user."""

    title = "Error"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(RosterError):
    """Bad manual entry. Nothing is added."""

    title = "Error"


class RosterImportError(RosterError):
    """Pasted or uploaded data could not be read as a table. The roster is kept."""

    title = "Import Failed"
