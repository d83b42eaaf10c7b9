"""
Library panel error taxonomy.

NotFound deliberately covers unknown uids, organization mismatches and denied
visibility alike, so callers cannot probe for the existence of library panels
they are not allowed to see.
"""


class LibraryPanelError(Exception):
    """Base class for every library panel failure"""
    status_code = 500
    default_message = "library panel error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class LibraryPanelNotFound(LibraryPanelError):
    status_code = 404
    default_message = "library panel could not be found"


class LibraryPanelConflict(LibraryPanelError):
    status_code = 400
    default_message = "library panel with that name already exists"


class LibraryPanelForbidden(LibraryPanelError):
    status_code = 403
    default_message = "insufficient permissions for library panel"


class LibraryPanelValidationError(LibraryPanelError):
    status_code = 400
    default_message = "invalid library panel"


class HeaderUIDMissing(LibraryPanelValidationError):
    default_message = "library panel uid missing"


class HeaderNameMissing(LibraryPanelValidationError):
    default_message = "library panel name missing"
