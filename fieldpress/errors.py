from __future__ import annotations


class FieldpressError(Exception):
    """Base class for every failure raised by fieldpress operations."""


class PageNotFound(FieldpressError):
    def __init__(self, page_index: int, page_count: int) -> None:
        super().__init__(f"Page {page_index} does not exist in PDF")
        self.page_index = page_index
        self.page_count = page_count


class InvalidDocument(FieldpressError):
    pass


class UnsupportedImageFormat(FieldpressError):
    def __init__(self, message: str = "Unsupported image format. Only PNG and JPEG are supported.") -> None:
        super().__init__(message)


class MalformedField(FieldpressError, ValueError):
    pass


class SerializationFailure(FieldpressError):
    pass
