import os

from core.path_registry import PathRegistry


def test_register_reports_first_sight_only_once() -> None:
    registry = PathRegistry()

    assert registry.register(os.path.join("out", "pages", "Foo.json")) is False
    assert registry.register(os.path.join("out", "pages", "Foo.json")) is True
    assert registry.register(os.path.join("out", "pages", "Foo.json")) is True
    assert len(registry) == 1


def test_paths_are_normalized() -> None:
    registry = PathRegistry()
    registry.register(os.path.join("out", "pages", "..", "pages", "Foo.json"))

    assert os.path.join("out", "pages", "Foo.json") in registry
    assert os.path.join("out", "apps", "Foo.json") not in registry
    assert 42 not in registry


def test_registries_are_independent() -> None:
    first, second = PathRegistry(), PathRegistry()
    first.register("a/b")

    assert "a/b" in first
    assert "a/b" not in second
