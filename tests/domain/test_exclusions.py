from __future__ import annotations

from deppy.domain.exclusions import (
    ExclusionStrategy,
    exclude_dependencies,
    include_dependencies,
    parse_dependency_list,
)
from deppy.domain.model import ExclusionEntry, ExclusionLists, ExclusionPattern
from tests.helpers.storage import FakeSettingsStore, store_with


def test_exact_entry_requires_both_fields() -> None:
    strategy = ExclusionStrategy.from_store(store_with(("left-pad", "1.4.0")))

    assert strategy.is_excluded("left-pad", "1.4.0")
    assert not strategy.is_excluded("left-pad", "1.4.1")
    assert not strategy.is_excluded("right-pad", "1.4.0")


def test_pattern_requires_name_and_version_to_match() -> None:
    strategy = ExclusionStrategy.from_store(store_with(patterns=(("^jackson$", r"^2\.14"),)))

    assert strategy.is_excluded("jackson", "2.14.0")
    assert strategy.is_excluded("jackson", "2.14.1-rc1")
    assert not strategy.is_excluded("jackson", "2.15.0")
    assert not strategy.is_excluded("jackson-bom", "2.14.0")


def test_patterns_are_unanchored() -> None:
    strategy = ExclusionStrategy.from_store(store_with(patterns=(("kotlin", r"1\.4"),)))

    assert strategy.is_excluded("kotlinCoroutines", "11.4.0")
    assert strategy.is_excluded("kotlin", "1.4.20")


def test_invalid_pattern_is_skipped() -> None:
    strategy = ExclusionStrategy.from_store(
        store_with(patterns=(("(", ".*"), ("gradle", "^8"))),
    )

    assert len(strategy.patterns) == 1
    assert strategy.is_excluded("gradle", "8.0")


def test_empty_strategy_excludes_nothing() -> None:
    strategy = ExclusionStrategy.empty()

    assert not strategy.has_exclusions()
    assert not strategy.is_excluded("anything", "1.0")


def test_snapshot_ignores_later_store_changes() -> None:
    store = FakeSettingsStore()
    strategy = ExclusionStrategy.from_store(store)

    exclude_dependencies(store, [ExclusionEntry(name="vue", version="3.0.0")])

    assert not strategy.is_excluded("vue", "3.0.0")
    assert ExclusionStrategy.from_store(store).is_excluded("vue", "3.0.0")


def test_parse_dependency_list_splits_on_last_colon() -> None:
    entries = parse_dependency_list("left-pad:1.4.0,  com.google:guava:31.0\nnocolon, vue:3.0.0")

    assert entries == [
        ExclusionEntry(name="left-pad", version="1.4.0"),
        ExclusionEntry(name="com.google:guava", version="31.0"),
        ExclusionEntry(name="vue", version="3.0.0"),
    ]


def test_parse_dependency_list_handles_blank_input() -> None:
    assert parse_dependency_list("  \n, ") == []


def test_exclude_skips_duplicates_and_keeps_order() -> None:
    store = store_with(("a", "1"))

    updated = exclude_dependencies(
        store,
        [ExclusionEntry(name="b", version="2"), ExclusionEntry(name="a", version="1")],
    )

    assert updated.exact == (
        ExclusionEntry(name="a", version="1"),
        ExclusionEntry(name="b", version="2"),
    )
    assert store.exclusions == updated


def test_exclude_then_include_restores_behavior() -> None:
    store = FakeSettingsStore()
    entries = [ExclusionEntry(name="jackson", version="2.14.0")]
    before = ExclusionStrategy.from_store(store).is_excluded("jackson", "2.14.0")

    exclude_dependencies(store, entries)
    assert ExclusionStrategy.from_store(store).is_excluded("jackson", "2.14.0")

    include_dependencies(store, entries)
    assert ExclusionStrategy.from_store(store).is_excluded("jackson", "2.14.0") is before
    assert store.exclusions == ExclusionLists()


def test_pattern_lists_are_maintained_separately() -> None:
    store = store_with(("vue", "3.0.0"))

    exclude_dependencies(store, parse_dependency_list("^vue$:^4"), patterns=True)
    include_dependencies(store, parse_dependency_list("vue:3.0.0"), patterns=True)

    assert store.exclusions.exact == (ExclusionEntry(name="vue", version="3.0.0"),)
    assert store.exclusions.patterns == (
        ExclusionPattern(name_pattern="^vue$", version_pattern="^4"),
    )


def test_include_requires_both_fields_to_match() -> None:
    store = store_with(("vue", "3.0.0"))

    include_dependencies(store, [ExclusionEntry(name="vue", version="3.0.1")])

    assert store.exclusions.exact == (ExclusionEntry(name="vue", version="3.0.0"),)
