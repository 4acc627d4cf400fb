"""Exceptions raised by the tournament engine."""


class TournamentError(Exception):
    """Base class; carries an HTTP-style status code for the API layer."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidInput(TournamentError):
    """Malformed construction parameters."""

    def __init__(self, message="Invalid tournament input."):
        super().__init__(message, 400)


class NotFound(TournamentError):
    """Unknown tournament or match id."""

    def __init__(self, message="Not found."):
        super().__init__(message, 404)


class NotReady(TournamentError):
    """Both competitors of a match are not determined yet."""

    def __init__(self, message="Cannot record result: teams not yet determined"):
        super().__init__(message, 409)


class InvalidResult(TournamentError):
    """Score line that elimination play cannot accept."""

    def __init__(self, message="Ties are not allowed in elimination matches"):
        super().__init__(message, 400)
