from __future__ import annotations


class CatalogError(Exception):
    """Base class for errors raised by the catalog query layer."""


class InvalidParameterError(CatalogError):
    pass


class NotFoundError(CatalogError):
    pass
