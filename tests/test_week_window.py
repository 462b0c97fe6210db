from datetime import date

from deepwork.domain.week import Week
from deepwork.domain.week_window import WeekWindow


def _week(day: int) -> Week:
    return Week(date(2025, 3, day))


def test_shift_forward_and_back() -> None:
    previous, current, upcoming = _week(3), _week(10), _week(17)
    window = WeekWindow(current, previous, upcoming)

    new_current = window.shift_forward(_week(24))

    assert new_current is upcoming
    assert window.previous is current
    assert window.next.start_date == date(2025, 3, 24)

    replacement = _week(3)
    assert window.shift_backward(replacement) is current
    assert window.previous is replacement
    assert window.next is upcoming


def test_missing_neighbours() -> None:
    window = WeekWindow(_week(10))

    assert not window.has_previous()
    assert not window.has_next()
    assert window.weeks()[1] is window.current


def test_setters_replace_stale_weeks() -> None:
    window = WeekWindow(_week(10), _week(3), _week(17))
    fresh = _week(10)

    window.set_current(fresh)
    window.set_next(None)
    window.set_previous(None)

    assert window.current is fresh
    assert window.weeks() == [None, fresh, None]
