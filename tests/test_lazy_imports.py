"""Tests for the lazy top-level API in aim/__init__.py."""

import pytest

import aim


class TestLazyImports:
    @pytest.mark.parametrize("name", aim.__all__)
    def test_public_names_resolve(self, name: str) -> None:
        assert getattr(aim, name) is not None

    def test_same_objects_as_modules(self) -> None:
        from aim.app import App
        from aim.context import Context
        from aim.errors import HTTPError

        assert aim.App is App
        assert aim.Context is Context
        assert aim.HTTPError is HTTPError

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute 'Nope'"):
            aim.Nope  # noqa: B018

    def test_version(self) -> None:
        assert isinstance(aim.__version__, str)
