__all__ = ["ApplicationError", "InvalidInput", "Unauthorized", "Forbidden", "NotFound", "RecordNotFound",
           "InvalidState", "UpstreamError", "ConditionalCheckFailed"]


class ApplicationError(Exception):
    STATUS_CODE = 500
    LEVEL = 'exception'


# Request exceptions
class InvalidInput(ApplicationError):
    STATUS_CODE = 400
    LEVEL = 'warning'


class Unauthorized(ApplicationError):
    STATUS_CODE = 401
    LEVEL = 'warning'


class Forbidden(ApplicationError):
    STATUS_CODE = 403
    LEVEL = 'warning'


class NotFound(ApplicationError):
    STATUS_CODE = 404
    LEVEL = 'warning'


class InvalidState(ApplicationError):
    STATUS_CODE = 400
    LEVEL = 'warning'


# Payment gateway exceptions
class UpstreamError(ApplicationError):
    STATUS_CODE = 502
    LEVEL = 'error'


# DynamoDB exceptions
class RecordNotFound(NotFound):
    LEVEL = 'info'


class ConditionalCheckFailed(ApplicationError):
    LEVEL = 'info'

