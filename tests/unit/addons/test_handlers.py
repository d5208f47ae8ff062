from __future__ import annotations

from addonhub.core.addons import AddonType, HandlerRegistry
from tests.unit.addons.fakes import FakeHandler


def test_first_matching_handler_wins() -> None:
    first = FakeHandler(content_type="zip")
    second = FakeHandler(content_type="zip")
    other = FakeHandler(content_type="jar")
    registry = HandlerRegistry([other, first, second])

    assert registry.find_handler(AddonType.BINDING, "zip") is first
    assert registry.find_handler(AddonType.BINDING, "jar") is other
    assert registry.find_handler(AddonType.BINDING, "tar") is None


def test_register_is_idempotent_and_unregister_tolerates_absent() -> None:
    handler = FakeHandler()
    registry = HandlerRegistry()
    registry.register(handler)
    registry.register(handler)
    assert registry.handlers() == [handler]

    registry.unregister(handler)
    registry.unregister(handler)
    assert registry.handlers() == []


def test_all_ready() -> None:
    registry = HandlerRegistry()
    assert registry.all_ready()

    slow = FakeHandler(ready=False)
    registry.register(FakeHandler())
    registry.register(slow)
    assert not registry.all_ready()

    slow.ready = True
    assert registry.all_ready()


def test_is_installed_checks_every_handler() -> None:
    registry = HandlerRegistry([FakeHandler(), FakeHandler(content_type="jar", installed={"hub:binding:a"})])
    assert registry.is_installed("hub:binding:a")
    assert not registry.is_installed("hub:binding:b")


def test_ready_listeners_are_notified() -> None:
    registry = HandlerRegistry()
    seen = []
    registry.add_ready_listener(seen.append)

    waiting = FakeHandler(ready=False)
    registry.register(waiting)
    assert seen == []

    ready = FakeHandler()
    registry.register(ready)
    assert seen == [ready]

    waiting.ready = True
    registry.handler_ready(waiting)
    assert seen == [ready, waiting]


def test_failing_ready_listener_does_not_stop_others() -> None:
    registry = HandlerRegistry()
    seen = []

    def broken(handler) -> None:
        raise RuntimeError("boom")

    registry.add_ready_listener(broken)
    registry.add_ready_listener(seen.append)
    handler = FakeHandler()
    registry.handler_ready(handler)

    assert seen == [handler]
