"""
Error taxonomy for the DJ room scheduler.

Every error a caller can see derives from ``SchedulerError`` and carries a
machine readable ``code``, the HTTP ``status`` the routes answer with, and
optional ``details`` merged into the JSON body.
"""


class SchedulerError(Exception):
    code = "scheduler_error"
    status = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class InvalidReference(SchedulerError):
    code = "invalid_reference"
    status = 400


class ContributorMuted(SchedulerError):
    code = "contributor_muted"
    status = 403

    def __init__(self, remaining_seconds=None):
        if remaining_seconds is None:
            message = "You are muted in this room"
        else:
            message = f"You are muted in this room for another {remaining_seconds} seconds"
        super().__init__(message, remaining_seconds=remaining_seconds)
        self.remaining_seconds = remaining_seconds


class QuotaExceeded(SchedulerError):
    code = "quota_exceeded"
    status = 400

    def __init__(self, max_queue_per_user):
        super().__init__(
            f"You can have at most {max_queue_per_user} tracks in the queue",
            max_queue_per_user=max_queue_per_user,
        )
        self.max_queue_per_user = max_queue_per_user


class NotFound(SchedulerError):
    code = "not_found"
    status = 404


class Forbidden(SchedulerError):
    code = "forbidden"
    status = 403


class InvalidReaction(SchedulerError):
    code = "invalid_reaction"
    status = 400


class InvalidState(SchedulerError):
    code = "invalid_state"
    status = 409


class InvalidSettings(SchedulerError):
    code = "invalid_settings"
    status = 400


class InvalidRequest(SchedulerError):
    code = "invalid_request"
    status = 400


class RoomBusy(SchedulerError):
    code = "room_busy"
    status = 503


class StoreUnavailable(SchedulerError):
    code = "store_unavailable"
    status = 503


class CatalogUnavailable(Exception):
    """Raised by catalog lookups. Never surfaced to callers."""
