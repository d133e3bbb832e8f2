"""Exception types raised by the generator pipeline."""

from __future__ import annotations


class ImageGenError(RuntimeError):
    """Base class for failures that terminate a generation run."""


class ConfigError(ImageGenError):
    """Raised when configuration, filters, or template selection are invalid."""


class DiscoveryError(ImageGenError):
    """Raised when a source file cannot be read or its package clause parsed."""


class RenderError(ImageGenError):
    """Raised when a template cannot be rendered or written."""


class ResolutionError(ImageGenError):
    """Raised when an image name, identity, or version cannot be resolved."""


class FetchError(ImageGenError):
    """Raised when a sibling repository's image mapping cannot be fetched."""


__all__ = [
    "ConfigError",
    "DiscoveryError",
    "FetchError",
    "ImageGenError",
    "RenderError",
    "ResolutionError",
]
