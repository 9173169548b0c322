"""Gateway error taxonomy.

Every failure inside the dispatch layer surfaces as a ``GatewayError``
subclass. Handlers map ``status`` and a fixed public ``message`` onto the
HTTP response; the exception text itself is only ever logged.
"""

GENERIC_MESSAGE = "Internal Server Error"


class GatewayError(Exception):
    status = 500
    error_type = "internal_error"
    public_message = GENERIC_MESSAGE

    @property
    def kind(self) -> str:
        return type(self).__name__


class UnsupportedModel(GatewayError):
    pass


class MissingCredential(GatewayError):
    pass


class MissingFile(GatewayError):
    status = 400
    error_type = "invalid_request_error"
    public_message = "No file uploaded"


class InvalidRequest(GatewayError):
    pass


class MalformedProviderResponse(GatewayError):
    pass


class DimensionMismatch(GatewayError):
    pass


class DegenerateVector(GatewayError):
    pass


class ProviderCallFailed(GatewayError):
    error_type = "api_error"

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
