"""
tests.test_convention

Naming convention hook.

Responsibilities:
- Verify convention precedence (observation override > registry global > default).
- Verify explicit names/tags win over convention defaults and stop-time refresh.
"""

from __future__ import annotations

from collections.abc import Iterable

from observation_demo.observation import (
    Context,
    KeyValue,
    ObservationConvention,
    ObservationRegistry,
)
from tests.support import RecordingHandler


class _JobContext(Context):
    def __init__(self, queue: str) -> None:
        super().__init__()
        self.queue = queue
        self.result = "pending"


class _JobConvention(ObservationConvention):
    def __init__(self, prefix: str = "job") -> None:
        self.prefix = prefix

    def supports_context(self, context: Context) -> bool:
        return isinstance(context, _JobContext)

    def get_contextual_name(self, context: _JobContext) -> str | None:  # type: ignore[override]
        return f"{self.prefix} {context.queue}"

    def get_low_cardinality_key_values(self, context: _JobContext) -> Iterable[KeyValue]:  # type: ignore[override]
        return (KeyValue.of("queue", context.queue), KeyValue.of("result", context.result))

    def get_high_cardinality_key_values(self, context: _JobContext) -> Iterable[KeyValue]:  # type: ignore[override]
        return (KeyValue.of("prefix", self.prefix),)


class _RenamingConvention(ObservationConvention):
    def get_name(self) -> str | None:
        return "renamed.by.convention"


def _job(registry: ObservationRegistry, **kwargs):
    context = _JobContext("emails")
    return context, registry.create("job.run", lambda: context, **kwargs)


def test_global_convention_provides_defaults(registry: ObservationRegistry) -> None:
    registry.observation_convention(_JobConvention())

    context, observation = _job(registry)
    observation.start()
    context.result = "done"
    observation.stop()

    assert context.contextual_name == "job emails"
    # "result" is refreshed at stop time.
    assert context.low_cardinality_key_values.as_dict() == {"queue": "emails", "result": "done"}
    assert context.high_cardinality_key_values.as_dict() == {"prefix": "job"}


def test_explicit_values_win_over_convention(registry: ObservationRegistry) -> None:
    registry.observation_convention(_JobConvention())

    context, observation = _job(registry, contextual_name="explicit")
    observation.low_cardinality_key_value("result", "forced")
    observation.start()
    context.result = "done"
    observation.stop()

    assert context.contextual_name == "explicit"
    assert context.low_cardinality_key_values.get("result") == "forced"


def test_tag_set_after_start_takes_over_convention_key(registry: ObservationRegistry) -> None:
    registry.observation_convention(_JobConvention())

    context, observation = _job(registry)
    observation.start()
    observation.low_cardinality_key_value("queue", "override")
    observation.stop()

    assert context.low_cardinality_key_values.get("queue") == "override"


def test_convention_precedence(registry: ObservationRegistry) -> None:
    registry.observation_convention(_JobConvention("global"))

    context, observation = _job(registry, convention=_JobConvention("custom"))
    observation.start()
    observation.stop()
    assert context.contextual_name == "custom emails"

    context, observation = _job(registry, default_convention=_JobConvention("default"))
    observation.start()
    observation.stop()
    assert context.contextual_name == "global emails"


def test_default_convention_applies_without_global(registry: ObservationRegistry) -> None:
    context, observation = _job(registry, default_convention=_JobConvention("default"))
    observation.start()
    observation.stop()

    assert context.contextual_name == "default emails"


def test_convention_for_other_contexts_is_skipped(registry: ObservationRegistry) -> None:
    registry.observation_convention(_JobConvention())

    observation = registry.create("plain").start()
    observation.stop()

    assert observation.context.contextual_name is None
    assert len(observation.context.low_cardinality_key_values) == 0


def test_convention_can_rename_before_start(recorder: RecordingHandler) -> None:
    registry = ObservationRegistry().observation_handler(recorder)
    observation = registry.create("original", convention=_RenamingConvention())
    observation.start()
    observation.stop()

    assert observation.context.name == "renamed.by.convention"
    assert recorder.calls[0] == ("on_start", "renamed.by.convention")


# --- Module Notes -----------------------------------------------------------
# Conventions never see the handlers; they only shape the context before dispatch.
