# aislides/errors.py
from __future__ import annotations


class AppError(Exception):
    """Base class for errors reported to HTTP clients as ``{"error": ...}``."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(AppError):
    status_code = 500


class UpstreamFormatError(AppError):
    """The model reply could not be turned into a slides payload."""

    status_code = 502

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message)
        self.excerpt = excerpt


GenerationFormatError = UpstreamFormatError


class UpstreamTransportError(AppError):
    status_code = 502


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 400
