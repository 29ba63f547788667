"""Error types raised by the recommendation core and its collaborators."""


class ClosetError(Exception):
    """Base class for closet service errors."""


class NotFoundError(ClosetError):
    """The requested item is absent or not owned by the user."""


class MissingEmbeddingError(ClosetError):
    """The base item has no visual embedding yet.

    Callers may retry once the enrichment step has processed the item.
    """


class StoreFailureError(ClosetError):
    """An underlying store operation failed; carries the driver message."""


class InvalidPaletteError(ClosetError):
    """A palette handed to color comparison has no vibrant swatch."""


class ProviderError(ClosetError):
    """An embedding or color extraction provider failed."""


__all__ = [
    "ClosetError",
    "NotFoundError",
    "MissingEmbeddingError",
    "StoreFailureError",
    "InvalidPaletteError",
    "ProviderError",
]
