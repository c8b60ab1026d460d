"""Tests for engine/events.py - hook bus."""

from collections.abc import Mapping

import pytest

from toolsmith.engine.events import POST_INSTALL, PRE_INSTALL, EventBus, hook_name


class TestEventBus:
    """Tests for EventBus."""

    def test_fires_in_registration_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []
        bus.add_hook(PRE_INSTALL, lambda ctx: seen.append("first"))
        bus.add_hook(PRE_INSTALL, lambda ctx: seen.append("second"))

        assert bus.fire(PRE_INSTALL) == []
        assert seen == ["first", "second"]

    def test_context_carries_event_name(self) -> None:
        bus = EventBus()
        received: list[Mapping[str, object]] = []
        bus.add_hook(POST_INSTALL, received.append)

        bus.fire(POST_INSTALL, {"recipe": "jq"})

        assert received == [{"event": POST_INSTALL, "recipe": "jq"}]

    def test_failing_hook_is_isolated(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        def boom(ctx: Mapping[str, object]) -> None:
            raise RuntimeError("boom")

        bus.add_hook(PRE_INSTALL, boom)
        bus.add_hook(PRE_INSTALL, lambda ctx: seen.append("after"))

        failures = bus.fire(PRE_INSTALL)

        assert seen == ["after"]
        assert len(failures) == 1
        assert failures[0].event == PRE_INSTALL
        assert failures[0].error == "boom"
        assert failures[0].hook_name.endswith("boom")

    def test_redacts_error_text(self) -> None:
        bus = EventBus()

        def leaky(ctx: Mapping[str, object]) -> None:
            raise RuntimeError("token ghp_abc rejected")

        bus.add_hook(PRE_INSTALL, leaky)

        failures = bus.fire(PRE_INSTALL, redact=lambda text: text.replace("ghp_abc", "***"))

        assert [f.error for f in failures] == ["token *** rejected"]

    def test_duplicate_registration_ignored(self) -> None:
        bus = EventBus()
        calls: list[int] = []

        def hook(ctx: Mapping[str, object]) -> None:
            calls.append(1)

        bus.add_hook(PRE_INSTALL, hook)
        bus.add_hook(PRE_INSTALL, hook)
        bus.fire(PRE_INSTALL)

        assert calls == [1]
        assert bus.hooks(PRE_INSTALL) == (hook,)

    def test_bound_hooks_run_first(self) -> None:
        bus = EventBus()
        seen: list[str] = []
        bus.add_hook(POST_INSTALL, lambda ctx: seen.append("bus"))

        bus.fire(POST_INSTALL, bound=[lambda ctx: seen.append("bound")])

        assert seen == ["bound", "bus"]

    def test_unknown_event_is_noop(self) -> None:
        assert EventBus().fire("custom_event") == []

    def test_rejects_empty_event(self) -> None:
        with pytest.raises(ValueError):
            EventBus().add_hook("", lambda ctx: None)

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(TypeError):
            EventBus().add_hook(PRE_INSTALL, "not callable")  # type: ignore[arg-type]


def _named_hook(ctx: Mapping[str, object]) -> None:
    pass


class TestHookName:
    def test_function(self) -> None:
        assert hook_name(_named_hook) == f"{__name__}._named_hook"
