class ServiceError(Exception):
    """Base for errors the service layer reports back to a caller."""

    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    # malformed or missing fields; nothing was written
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class PreconditionError(ServiceError):
    status_code = 409


class IllegalTransitionError(PreconditionError):
    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move booking from {current} to {requested}",
            current_status=current,
            requested_status=requested,
        )


class ExternalServiceError(ServiceError):
    # mail or payment-processor failure
    status_code = 502


class SignatureError(ServiceError):
    status_code = 400
