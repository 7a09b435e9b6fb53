"""Error types raised by gltf-slim."""

from __future__ import annotations


class GltfSlimError(Exception):
    """Base class for every error raised by gltf-slim."""


class FormatError(GltfSlimError, ValueError):
    """Malformed binary container or unparsable document."""


class ReferenceInconsistency(GltfSlimError, LookupError):
    """A reference field points at an element that does not exist."""

    def __init__(self, category: str, element_id: object) -> None:
        self.category = category
        self.element_id = element_id
        super().__init__(f"{category}[{element_id!r}] does not exist")


class ConfigurationError(GltfSlimError, RuntimeError):
    """A pipeline stage cannot be resolved or scheduled."""
