"""
tests.test_keyvalues

Tag model semantics.

Responsibilities:
- Ensure keys stay unique with last-write-wins, both on the container and through
  the observation API.
"""

from __future__ import annotations

import pytest

from observation_demo.observation import IllegalStateError, KeyValue, KeyValues, ObservationRegistry


def test_key_value_equality_and_immutability() -> None:
    kv = KeyValue.of("status", 200)

    assert kv == KeyValue("status", "200")
    assert kv != KeyValue("status", "404")
    with pytest.raises(AttributeError):
        kv.value = "500"  # type: ignore[misc]


def test_key_value_requires_key() -> None:
    with pytest.raises(ValueError):
        KeyValue.of("", "x")


def test_last_write_wins_and_keeps_first_insert_order() -> None:
    kvs = KeyValues({"a": "1", "b": "2"})
    kvs.set("a", "3")
    kvs.add(KeyValue("c", "4"))

    assert kvs.as_dict() == {"a": "3", "b": "2", "c": "4"}
    assert kvs.keys() == ["a", "b", "c"]
    assert len(kvs) == 3
    assert "a" in kvs and kvs.get("a") == "3"
    assert kvs.get("missing") is None


def test_observation_tag_sets_hold_last_value_per_key(registry: ObservationRegistry) -> None:
    writes = [("k1", "a"), ("k2", "b"), ("k1", "c"), ("k3", "d"), ("k2", "e")]
    observation = registry.create("tags")
    for key, value in writes[:3]:
        observation.low_cardinality_key_value(key, value)
        observation.high_cardinality_key_value(key, value.upper())
    observation.start()
    for key, value in writes[3:]:
        observation.low_cardinality_key_value(key, value)
        observation.high_cardinality_key_value(key, value.upper())
    observation.stop()

    expected = {}
    for key, value in writes:
        expected[key] = value
    context = observation.context
    assert context.low_cardinality_key_values.as_dict() == expected
    assert context.high_cardinality_key_values.as_dict() == {k: v.upper() for k, v in expected.items()}


def test_tagging_after_stop_fails_loudly(registry: ObservationRegistry) -> None:
    observation = registry.create("tags").start()
    observation.stop()

    with pytest.raises(IllegalStateError):
        observation.low_cardinality_key_value("late", "x")
    with pytest.raises(IllegalStateError):
        observation.high_cardinality_key_value("late", "x")
    assert "late" not in observation.context.low_cardinality_key_values


# --- Module Notes -----------------------------------------------------------
# Cardinality only matters to backends (metric labels vs span attributes); the
# container semantics are identical for both sets.
