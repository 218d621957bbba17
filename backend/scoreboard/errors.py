"""Error types surfaced to controller and viewer callers.

Absence (no active game, unknown stream key) is not an error here: those
paths return None/False. These exceptions cover the cases a caller has to
act on.
"""
from flask import current_app, jsonify


class ScoreboardError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class BadRequest(ScoreboardError):
    status_code = 400


class AccessDenied(ScoreboardError):
    """Unknown key, bad token, blocked or deactivated streamer: never say which."""
    status_code = 401

    def __init__(self, message='Unauthorized'):
        super().__init__(message)


class ActiveGameConflict(ScoreboardError):
    """Storage rejected a second open game for the same streamer."""
    status_code = 409

    def __init__(self, message='Another game is already active, please retry'):
        super().__init__(message)

    def to_dict(self):
        return {'error': self.message, 'retryable': True}


def handle_scoreboard_error(exc):
    if exc.status_code >= 500:
        current_app.logger.exception(f"[error] {exc.message}")
    else:
        current_app.logger.warning(f"[error] status={exc.status_code} {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


def register_error_handlers(app):
    app.register_error_handler(ScoreboardError, handle_scoreboard_error)
