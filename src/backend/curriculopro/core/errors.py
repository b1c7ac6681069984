"""Domain exceptions raised by services and translated to HTTP responses in main."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_payload(self) -> dict:
        return {"detail": self.message, **self.extra}


class BadRequestError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class ConflictError(AppError):
    status_code = 409


class ExtractionError(AppError):
    status_code = 400


class InsufficientCreditsError(AppError):
    status_code = 402

    def __init__(self, credits_available: int, required: int = 1):
        super().__init__(
            "Créditos insuficientes",
            requiresPayment=True,
            creditsAvailable=credits_available,
            creditsRequired=required,
        )
        self.credits_available = credits_available


class AIServiceError(AppError):
    status_code = 502


class PaymentError(AppError):
    status_code = 502


class EmailDeliveryError(AppError):
    status_code = 502
