"""Exception hierarchy shared by the classification pipeline and the HTTP layer."""


class EcoFarmError(Exception):
    """Base class for errors raised by EcoFarm services."""


class EmptyInputError(EcoFarmError):
    """No label guesses were available, so no decision can be made."""

    def __init__(self, message: str = "No label guesses available; cannot classify image"):
        super().__init__(message)


class OracleUnavailableError(EcoFarmError):
    """The image-labeling oracle failed to initialize or to classify an image.

    Attributes:
        original_exception: The underlying failure, if any
    """

    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(message)
        self.original_exception = original_exception


class NetworkError(EcoFarmError):
    """A remote call failed or returned a body that does not match its contract."""

    GENERIC_MESSAGE = "Network error - check backend is running"

    def __init__(self, message: str = GENERIC_MESSAGE):
        super().__init__(message)


class WeatherLookupError(EcoFarmError):
    """Current weather could not be fetched for a location.

    Attributes:
        status_code: HTTP status the API layer should answer with
    """

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(EcoFarmError):
    """A result could not be written to the database."""
