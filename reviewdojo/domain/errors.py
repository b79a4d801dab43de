"""Domain error taxonomy.

Validation errors are raised by the value-type constructors. Callers applying
a batch catch ``DomainError`` per record, log it, and move on.
"""

from __future__ import annotations


class DomainError(ValueError):
    """Base class for domain validation failures."""


class InvalidCategoryError(DomainError):
    pass


class InvalidLanguageError(DomainError):
    pass


class InvalidSeverityError(DomainError):
    pass


class InvalidPathComponentError(DomainError):
    pass


class InvalidPRReferenceError(DomainError):
    pass


class InvalidKnowledgeDocumentError(DomainError):
    """A bulk-apply document that cannot be processed at all."""
