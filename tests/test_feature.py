from __future__ import annotations

import pytest

from jsco.feature import LOOKUP_KEYS, Feature
from jsco.util.text import feature_cache_name


def test_every_feature_has_a_key() -> None:
    assert set(LOOKUP_KEYS) == set(Feature)
    for feature in Feature:
        assert feature.key
        assert "." in feature.key


def test_lookup_keys_are_unique() -> None:
    keys = [feature.key for feature in Feature]
    assert len(keys) == len(set(keys))


def test_cache_names_are_unique() -> None:
    names = {feature_cache_name(feature.key) for feature in Feature}
    assert len(names) == len(Feature)


def test_optional_catch_binding_is_not_aliased_to_optional_chaining() -> None:
    assert Feature.OPTIONAL_CATCH_BINDING.key != Feature.OPTIONAL_CHAINING.key
    assert Feature.OPTIONAL_CATCH_BINDING.key.startswith("javascript.statements.try_catch")


def test_from_key_round_trips() -> None:
    assert Feature.from_key("javascript.operators.await") is Feature.AWAIT
    with pytest.raises(ValueError, match="Unknown lookup key"):
        Feature.from_key("javascript.operators.nope")


def test_label_is_readable_name() -> None:
    assert Feature.NULLISH_COALESCING.label == "NullishCoalescing"
