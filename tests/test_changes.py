from __future__ import annotations

from itertools import permutations

import pytest

from prmon.changes import (
    ChangeDetector,
    ComparisonPolicy,
    OrderedKeyChecker,
    UnorderedKeyChecker,
    key_checker_for,
)


def test_key_checker_for_defaults_to_unordered():
    assert isinstance(key_checker_for(["a"]), UnorderedKeyChecker)
    assert isinstance(key_checker_for(["a"], None), UnorderedKeyChecker)
    assert isinstance(key_checker_for(["a"], "ordered"), OrderedKeyChecker)
    assert isinstance(key_checker_for(["a"], ComparisonPolicy.ORDERED), OrderedKeyChecker)


def test_key_checker_for_rejects_unknown_policy():
    with pytest.raises(ValueError):
        key_checker_for(["a"], "sideways")


def test_unordered_checker_ignores_ordering():
    keys = ["a:1:open:N", "a:2:open:N", "b:7:merged:Y"]
    checker = UnorderedKeyChecker.from_keys(keys)

    for reordered in permutations(keys):
        assert checker.matches(list(reordered)) is True


def test_ordered_checker_is_sensitive_to_ordering():
    checker = OrderedKeyChecker.from_keys(["a", "b", "c"])

    assert checker.matches(["a", "b", "c"]) is True
    assert checker.matches(["b", "a", "c"]) is False


def test_checkers_require_same_length():
    for policy in ComparisonPolicy:
        checker = key_checker_for(["a", "b"], policy)
        assert checker.matches(["a"]) is False
        assert checker.matches(["a", "b", "b"]) is False


def test_empty_lists_are_equal():
    for policy in ComparisonPolicy:
        assert key_checker_for([], policy).matches([]) is True


def test_unordered_checker_detects_replaced_key():
    checker = UnorderedKeyChecker.from_keys(["a", "b"])
    assert checker.matches(["a", "c"]) is False


def test_detector_keeps_baseline_when_unchanged():
    detector = ChangeDetector(["a", "b"])
    baseline = detector.checker

    assert detector.has_changed(["b", "a"]) is False
    assert detector.checker is baseline


def test_detector_advances_baseline_on_change():
    detector = ChangeDetector(["a:1:open:N"])

    assert detector.has_changed(["a:1:merged:N"]) is True
    assert detector.has_changed(["a:1:merged:N"]) is False
    assert detector.has_changed(["a:1:open:N"]) is True


def test_detector_first_call_compares_against_initial_keys():
    assert ChangeDetector(["a"]).has_changed(["a"]) is False
    assert ChangeDetector([]).has_changed(["a"]) is True


def test_ordered_detector_reports_reorder_as_change():
    unordered = ChangeDetector(["a", "b"])
    ordered = ChangeDetector(["a", "b"], policy="ordered")

    assert unordered.has_changed(["b", "a"]) is False
    assert ordered.has_changed(["b", "a"]) is True
    # The reordered list is the new baseline
    assert ordered.has_changed(["b", "a"]) is False
