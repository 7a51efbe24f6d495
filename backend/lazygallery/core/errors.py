"""Error taxonomy shared by the services and the HTTP layer.

Authorization failures deliberately reuse :class:`NotFound` so that a wrong
owner or a wrong password cannot be told apart from a missing resource.
"""


class GalleryError(Exception):
    status_code = 500
    error = "internal_error"

    def __init__(self, message: str = "Internal error") -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(GalleryError):
    status_code = 400
    error = "invalid_argument"


class MediaSharingRejected(InvalidArgument):
    # media endpoints report every rejection under the not_found code
    error = "not_found"


class NotFound(GalleryError):
    status_code = 404
    error = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)
