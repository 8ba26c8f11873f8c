from __future__ import annotations

import pytest

from iFiles.domain.models.window import ListWindow
from iFiles.domain.services.invariants import check_window, window_violations
from iFiles.domain.services.projector import project
from iFiles.errors import InvariantViolationError


@pytest.fixture
def registry(make_node):
    return {n.id: n for n in (make_node(i, i.upper()) for i in ("a", "b", "c"))}


def test_healthy_window_has_no_violations(registry, name_asc):
    window = ListWindow(ordered=("a", "b"), cursor="more", unordered=("c",))
    assert window_violations(window, name_asc, registry.get) == []
    check_window(window, name_asc, registry.get)


@pytest.mark.parametrize(
    "window, fragment",
    [
        (ListWindow(ordered=("a", "a")), "duplicate"),
        (ListWindow(ordered=("a",), cursor="more", unordered=("b", "b")), "duplicate"),
        (ListWindow(ordered=("a",), cursor="more", unordered=("a",)), "both tiers"),
        (ListWindow(ordered=("a",), unordered=("b",)), "fully loaded"),
        (ListWindow(ordered=("b", "a")), "sorts after"),
        (ListWindow(ordered=("a", "ghost")), "not registered"),
    ],
)
def test_each_broken_invariant_is_reported(window, fragment, registry, name_asc):
    problems = window_violations(window, name_asc, registry.get)
    assert any(fragment in problem for problem in problems)
    with pytest.raises(InvariantViolationError):
        check_window(window, name_asc, registry.get)


def test_projection_is_ordered_then_unordered():
    window = ListWindow(ordered=("a", "b"), cursor="more", unordered=("z", "y"))
    assert project(window) == ("a", "b", "z", "y")
    assert project(ListWindow.empty()) == ()
