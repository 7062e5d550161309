"""
Exceptions raised by the manuscripts transform pipelines.

Fatal problems (schema violations, duplicate ids, unknown versions,
missing required models) surface as subclasses of ``TransformError``.
Missing optional references are never raised; they are logged and
replaced by placeholders.
"""

from __future__ import annotations


class TransformError(Exception):
    """Base class for every error raised by this package."""


class DecodeError(TransformError):
    """A model could not be turned into a valid content node."""

    def __init__(self, message: str, model_id: str | None = None) -> None:
        super().__init__(message)
        self.model_id = model_id


class EncodeError(TransformError):
    """A content node has no model encoder."""

    def __init__(self, message: str, node_type: str | None = None) -> None:
        super().__init__(message)
        self.node_type = node_type


class InvalidContentError(TransformError):
    """Child nodes do not satisfy a node type's content expression."""


class UnknownVersionError(TransformError, ValueError):
    """Requested JATS version is not supported."""

    def __init__(self, version: str) -> None:
        super().__init__(f"Unknown version {version}")
        self.version = version


class ManuscriptNotFoundError(TransformError, LookupError):
    """No manuscript model is present in the model map."""


class DuplicateIDError(TransformError):
    """The same identifier was seen twice while rewriting ids."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"ID {identifier} exists twice!")
        self.identifier = identifier


class MissingElementError(TransformError):
    """A required element is absent from an imported document."""


class MissingModelError(TransformError, LookupError):
    """A model required to build another one is absent."""
