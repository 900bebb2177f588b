"""Unit tests for the catalog exception hierarchy."""

from __future__ import annotations

from dharmaseed_player.utils.errors import (
    CatalogError,
    ConfigurationError,
    DirectoryBootstrapError,
    UpstreamError,
)


class TestCatalogErrors:
    def test_str_prefixes_provider(self) -> None:
        err = UpstreamError("Upstream returned HTTP 502", provider_name="talks_api", status_code=502)
        assert str(err) == "[talks_api] Upstream returned HTTP 502"
        assert err.message == "Upstream returned HTTP 502"
        assert err.status_code == 502

    def test_str_without_provider(self) -> None:
        assert str(CatalogError("boom")) == "boom"

    def test_default_messages(self) -> None:
        assert DirectoryBootstrapError().message == "Teacher directory bootstrap failed"
        assert ConfigurationError().message == "Invalid or missing configuration"
        assert UpstreamError().status_code is None

    def test_hierarchy(self) -> None:
        err = DirectoryBootstrapError(provider_name="teachers_api", status_code=500)
        assert isinstance(err, UpstreamError)
        assert isinstance(err, CatalogError)
        assert isinstance(ConfigurationError(), CatalogError)
