"""Exception hierarchy for the Dharma Seed catalog service.

All application exceptions inherit from :class:`CatalogError`, which carries
an optional ``provider_name`` naming the upstream resource involved (e.g.
``"talks_api"``, ``"teacher_listing"``, ``"retreat_feed"``).

    CatalogError
    +-- UpstreamError             (non-2xx status or transport failure)
    |   +-- DirectoryBootstrapError (teacher directory could not be built)
    +-- ConfigurationError        (invalid startup configuration)

Parse misses are never errors, and "talk not found" is a ``None`` return
value rather than an exception.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for all catalog service errors.

    Subclasses override ``default_message``.  ``str()`` of an error tagged
    with a provider reads ``[talks_api] Upstream returned HTTP 502``.
    """

    default_message = "Catalog operation failed"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self.message = message or self.default_message
        self.provider_name = provider_name
        super().__init__(self.message)

    def __str__(self) -> str:
        prefix = f"[{self.provider_name}] " if self.provider_name else ""
        return prefix + self.message


class UpstreamError(CatalogError):
    """The upstream site could not be reached or answered with a failure.

    ``status_code`` holds the HTTP status for non-success answers and is
    ``None`` for network-level failures (DNS, connect, read timeout).
    """

    default_message = "Upstream request failed"

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider_name)
        self.status_code = status_code


class DirectoryBootstrapError(UpstreamError):
    """Building the teacher directory failed; no partial snapshot is kept."""

    default_message = "Teacher directory bootstrap failed"


class ConfigurationError(CatalogError):
    default_message = "Invalid or missing configuration"
