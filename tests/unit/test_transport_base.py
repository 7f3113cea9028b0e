"""Tests for the ImageTransport ABC.

Covers: ABC enforcement, the default ``close`` and context-manager
behaviour, and the call-counting stub used across the suite.
"""

from __future__ import annotations

import unittest

from kml_mapsite.core.exceptions import FetchError
from kml_mapsite.models.image import FetchedImage
from kml_mapsite.transport.base import ImageTransport
from tests.stubs import StubTransport

# ---------------------------------------------------------------------------
# ABC enforcement
# ---------------------------------------------------------------------------


class TestABCEnforcement(unittest.TestCase):
    """ImageTransport cannot be instantiated directly."""

    def test_cannot_instantiate_abc(self) -> None:
        with self.assertRaises(TypeError):
            ImageTransport()  # type: ignore[abstract]

    def test_subclass_without_get_raises(self) -> None:
        class _Partial(ImageTransport):
            pass

        with self.assertRaises(TypeError):
            _Partial()  # type: ignore[abstract]

    def test_complete_subclass_works(self) -> None:
        class _Echo(ImageTransport):
            def get(self, url: str) -> FetchedImage:
                return FetchedImage(url=url, content=url.encode())

        transport = _Echo()
        assert transport.name == "_Echo"
        assert transport.get("https://x.org/a.png").content == b"https://x.org/a.png"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle(unittest.TestCase):
    def test_default_close_is_noop(self) -> None:
        class _Echo(ImageTransport):
            def get(self, url: str) -> FetchedImage:
                return FetchedImage(url=url, content=b"")

        _Echo().close()

    def test_context_manager_closes(self) -> None:
        stub = StubTransport()
        with stub as entered:
            assert entered is stub
            assert stub.closed is False
        assert stub.closed is True

    def test_context_manager_closes_on_error(self) -> None:
        stub = StubTransport()
        with self.assertRaises(RuntimeError), stub:
            raise RuntimeError("boom")
        assert stub.closed is True


# ---------------------------------------------------------------------------
# Stub transport
# ---------------------------------------------------------------------------


class TestStubTransport(unittest.TestCase):
    """The stub behaves like a real transport for unregistered URLs."""

    def test_unregistered_url_is_404(self) -> None:
        stub = StubTransport()
        with self.assertRaises(FetchError) as ctx:
            stub.get("https://x.org/missing.png")
        assert ctx.exception.status_code == 404
        assert stub.call_count("https://x.org/missing.png") == 1

    def test_registered_error_status(self) -> None:
        stub = StubTransport()
        stub.add("https://x.org/a.png", b"", status_code=503)
        with self.assertRaises(FetchError) as ctx:
            stub.get("https://x.org/a.png")
        assert ctx.exception.status_code == 503

    def test_registered_exception_raised(self) -> None:
        stub = StubTransport()
        stub.fail("https://x.org/a.png", FetchError("https://x.org/a.png", "Timed out"))
        with self.assertRaises(FetchError):
            stub.get("https://x.org/a.png")
