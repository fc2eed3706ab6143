import pytest

from minimd.timer import Timer, TimerSlot


def fake_clock(values):
    it = iter(values)
    return lambda: next(it)


def test_initial_array_has_one_zero_per_slot():
    timer = Timer(clock=fake_clock([]))
    assert timer.array == [0.0] * len(TimerSlot)
    assert len(timer.array) == TimerSlot.TEST + 1


def test_stamp_accumulates_intervals_into_slots():
    times = [1.0, 4.0, 6.5]
    timer = Timer(clock=fake_clock(times))
    timer.stamp()
    timer.stamp(TimerSlot.FORCE)
    timer.stamp(TimerSlot.COMM)
    assert timer.array[TimerSlot.FORCE] == pytest.approx(times[1] - times[0])
    assert timer.array[TimerSlot.COMM] == pytest.approx(times[2] - times[1])
    assert timer.array[TimerSlot.TOTAL] == 0.0


def test_stamp_adds_to_same_slot():
    times = [0.0, 2.0, 5.0]
    timer = Timer(clock=fake_clock(times))
    timer.stamp()
    timer.stamp(TimerSlot.NEIGH)
    timer.stamp(TimerSlot.NEIGH)
    assert timer.array[TimerSlot.NEIGH] == pytest.approx(times[2] - times[0])


def test_stamp_slot_without_start_raises():
    timer = Timer(clock=fake_clock([1.0]))
    with pytest.raises(RuntimeError):
        timer.stamp(TimerSlot.FORCE)


def test_extra_timing_is_independent_of_stamp():
    times = [1.0, 2.0, 7.0, 9.0]
    timer = Timer(clock=fake_clock(times))
    timer.stamp()
    timer.stamp_extra_start()
    timer.stamp_extra_stop(TimerSlot.TEST)
    timer.stamp(TimerSlot.FORCE)
    assert timer.array[TimerSlot.TEST] == pytest.approx(times[2] - times[1])
    assert timer.array[TimerSlot.FORCE] == pytest.approx(times[3] - times[0])


def test_extra_stop_without_start_raises():
    timer = Timer(clock=fake_clock([1.0]))
    with pytest.raises(RuntimeError):
        timer.stamp_extra_stop(TimerSlot.TEST)


def test_barrier_start_stop_measures_elapsed_and_synchronises():
    times = [10.0, 13.25]
    calls = []
    timer = Timer(clock=fake_clock(times), barrier=lambda: calls.append(1))
    timer.barrier_start(TimerSlot.TOTAL)
    assert timer.array[TimerSlot.TOTAL] == times[0]
    timer.barrier_stop(TimerSlot.TOTAL)
    assert timer.array[TimerSlot.TOTAL] == pytest.approx(times[1] - times[0])
    assert len(calls) == 2


def test_default_clock_gives_non_negative_elapsed():
    timer = Timer()
    timer.barrier_start(TimerSlot.TOTAL)
    timer.barrier_stop(TimerSlot.TOTAL)
    assert timer.array[TimerSlot.TOTAL] >= 0.0