"""Tests for livedown package exports and metadata."""

import pytest

import livedown


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(livedown.__version__, str)
        assert "0.1.0" in livedown.__version__

    def test_all_exports_resolvable(self) -> None:
        for name in livedown.__all__:
            getattr(livedown, name)

    def test_render_export(self) -> None:
        assert livedown.render("# Hi\n") == '<h1 id="hi">Hi</h1>\n'

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            livedown.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
