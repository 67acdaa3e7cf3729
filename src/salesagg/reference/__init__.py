"""Reference tables — supplier and category lookups by item code."""

from salesagg.reference.resolvers import (
    UNCATEGORIZED,
    UNKNOWN_SUPPLIER,
    ReferenceResolver,
    Resolution,
    SupplierResolver,
    SupplierRule,
    load_resolver,
)

__all__ = [
    "ReferenceResolver",
    "Resolution",
    "SupplierResolver",
    "SupplierRule",
    "UNCATEGORIZED",
    "UNKNOWN_SUPPLIER",
    "load_resolver",
]
