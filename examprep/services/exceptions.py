"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class SubscriptionError(ServiceError):
    pass


class InvalidComposition(ServiceError):
    pass


class TestConfigUnavailable(ServiceError):
    """Raised when a test is requested for a missing or unpublished config."""

    __test__ = False


class InsufficientQuestions(ServiceError):
    def __init__(self, message: str, shortfalls=None) -> None:
        super().__init__(message)
        self.shortfalls = list(shortfalls or [])


class AttemptNotFound(ServiceError):
    pass


class AttemptAlreadyCompleted(ServiceError):
    pass


class PaperNotFound(ServiceError):
    pass
