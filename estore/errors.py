"""
Domain errors raised by the store services.

Routes let these propagate; ``estore.main`` renders every one of them as
``{"success": false, "error": <message>}`` with the matching HTTP status.
"""


class StoreError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(StoreError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(StoreError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(StoreError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(StoreError):
    status_code = 404
    default_message = "Not found"


class GatewayUnavailable(StoreError):
    status_code = 502
    default_message = "Payment gateway unavailable"


class StorageUnavailable(StoreError):
    status_code = 503
    default_message = "Storage unavailable"
