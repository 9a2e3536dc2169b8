"""Tests for livedown._errors."""

from pathlib import Path

import pytest

from livedown._errors import (
    ConfigError,
    DocumentReadError,
    LifecycleError,
    LivedownError,
    StartupError,
    TransportError,
    WatchError,
)


class TestErrorHierarchy:
    """All livedown errors inherit from LivedownError."""

    def test_livedown_error_is_exception(self) -> None:
        assert issubclass(LivedownError, Exception)

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigError, StartupError, TransportError, LifecycleError, WatchError, DocumentReadError],
    )
    def test_inherits(self, error_cls: type[Exception]) -> None:
        assert issubclass(error_cls, LivedownError)

    def test_catch_all_livedown_errors(self) -> None:
        """All specific errors are catchable via LivedownError."""
        for error_cls in (ConfigError, StartupError, TransportError, LifecycleError, WatchError):
            with pytest.raises(LivedownError):
                raise error_cls("test")


class TestDocumentReadError:
    def test_message_names_file(self) -> None:
        cause = PermissionError("denied")
        err = DocumentReadError(Path("/tmp/docs/doc.md"), cause)
        assert str(err) == "doc.md: denied"
        assert err.path == Path("/tmp/docs/doc.md")
        assert err.cause is cause
