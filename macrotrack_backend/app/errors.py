from __future__ import annotations


class MacroTrackError(Exception):
    """Base error carrying an HTTP status and a message that is safe to show clients."""
    status_code = 500
    message = "Internal server error"
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(MacroTrackError):
    status_code = 400
    message = "Invalid request"


class AuthError(MacroTrackError):
    status_code = 401
    message = "Unauthorized"


class ProfileNotFoundError(MacroTrackError):
    status_code = 404
    message = "Profile not found"


class MealNotFoundError(MacroTrackError):
    status_code = 404
    message = "Meal not found"


class ProfileExistsError(MacroTrackError):
    status_code = 409
    message = "Profile already exists"


class UndefinedTargetError(MacroTrackError):
    status_code = 422
    message = "Macro targets are not set for this profile"


class StoreUnavailableError(MacroTrackError):
    status_code = 503
    message = "Storage is temporarily unavailable, please try again"
    retryable = True


class AnalysisError(MacroTrackError):
    status_code = 502
    message = "Meal analysis failed"


class AnalysisUnavailableError(AnalysisError):
    status_code = 503
    message = "Meal analysis is not configured"
