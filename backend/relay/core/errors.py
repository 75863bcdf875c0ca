# relay/core/errors.py


class RelayError(Exception):
    """Base error rendered to clients as {"error": message}"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(RelayError):
    """Malformed or missing request fields; raised before any side effect"""

    status_code = 400


class StorageUnavailable(RelayError):
    """The database rejected the operation; the cause is logged, not returned"""

    status_code = 500
