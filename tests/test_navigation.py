"""Tests for tab and cursor navigation."""

from __future__ import annotations

from awscosts.navigation import NavigationState, Tab


def test_next_tab_three_times_returns_home_with_reset() -> None:
    state = NavigationState(Tab.PREVIOUS, selected_row=4, scroll_offset=2)
    for _ in range(3):
        state = state.next_tab()
    assert state == NavigationState(Tab.PREVIOUS, 0, 0)


def test_tab_cycle_wraps_both_ways() -> None:
    state = NavigationState()
    assert state.next_tab().active_tab is Tab.PREVIOUS
    assert state.prev_tab().active_tab is Tab.TREND
    assert state.prev_tab().next_tab().active_tab is Tab.CURRENT


def test_tab_change_resets_cursor() -> None:
    state = NavigationState(Tab.CURRENT, selected_row=7, scroll_offset=3).prev_tab()
    assert (state.selected_row, state.scroll_offset) == (0, 0)


def test_move_down_at_last_row_is_noop() -> None:
    state = NavigationState(selected_row=4, scroll_offset=0)
    assert state.move_down(row_count=5, visible_rows=10).selected_row == 4


def test_move_up_at_top_is_noop() -> None:
    assert NavigationState().move_up(row_count=5, visible_rows=3) == NavigationState()


def test_empty_list_keeps_row_zero() -> None:
    state = NavigationState()
    assert state.move_down(0, 5) == state
    assert state.go_bottom(0, 5) == state


def test_minimal_scroll_when_moving_past_window() -> None:
    state = NavigationState()
    for _ in range(3):
        state = state.move_down(row_count=10, visible_rows=3)
    # row 3 just below a 3-row window: scroll by one, not to center
    assert (state.selected_row, state.scroll_offset) == (3, 1)

    state = state.move_up(10, 3)
    assert (state.selected_row, state.scroll_offset) == (2, 1)
    state = state.move_up(10, 3).move_up(10, 3)
    assert (state.selected_row, state.scroll_offset) == (0, 0)


def test_go_bottom_and_top() -> None:
    bottom = NavigationState().go_bottom(row_count=10, visible_rows=4)
    assert (bottom.selected_row, bottom.scroll_offset) == (9, 6)

    top = bottom.go_top(row_count=10, visible_rows=4)
    assert (top.selected_row, top.scroll_offset) == (0, 0)


def test_zero_visible_rows_treated_as_one() -> None:
    state = NavigationState().move_down(row_count=3, visible_rows=0)
    assert (state.selected_row, state.scroll_offset) == (1, 1)


def test_transitions_do_not_mutate() -> None:
    state = NavigationState()
    state.move_down(5, 2)
    state.next_tab()
    assert state == NavigationState(Tab.CURRENT, 0, 0)


def test_tab_titles() -> None:
    assert [t.title for t in Tab] == ["Current Month", "Previous Month", "6-Month Trend"]
