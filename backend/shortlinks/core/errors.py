class ShortLinkError(Exception):
    """Base error for link operations. Rendered by the API as an error envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShortLinkError):
    """Bad destination, alias, tags or expiration"""
    status_code = 400


class ConflictError(ShortLinkError):
    """Alias or code already taken"""
    status_code = 400


class NotFoundError(ShortLinkError):
    """Unknown code, inactive link, or a link owned by someone else"""
    status_code = 404


class GoneError(ShortLinkError):
    """Link exists but has expired"""
    status_code = 410


class CapacityError(ShortLinkError):
    """No free short code found within the attempt budget"""
    status_code = 503
