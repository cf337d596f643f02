from __future__ import annotations


class NoteLabError(Exception):
    pass


class ParseError(NoteLabError, ValueError):
    """The document is not valid JSON."""


class ValidationError(NoteLabError, ValueError):
    """The document parsed but is missing required fields."""


class UnsupportedShapeError(ValidationError):
    pass


class ReferenceNotFound(NoteLabError, LookupError):
    pass
