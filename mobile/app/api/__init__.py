"""HTTP client and payload models for the backend REST service."""

from .client import BackendApiClient

__all__ = ["BackendApiClient"]
