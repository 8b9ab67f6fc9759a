"""Tests for animation/transition instances and the scheduler registry."""

import math

import pytest

from stylemotion.model.keyframes import KeyframeDefinition
from stylemotion.model.snapshot import LayoutBox
from stylemotion.model.values import Color, Percentage, Scalar, TransformFunction, TransformList
from stylemotion.scheduler import (
    AnimationInstance,
    AnimationSettings,
    AnimationState,
    Direction,
    FillMode,
    Scheduler,
)
from stylemotion.values import parse_value


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _slide() -> KeyframeDefinition:
    return KeyframeDefinition.from_mapping(
        "slide", {"from": {"marginLeft": "100%"}, "to": {"marginLeft": "0%"}}
    )


def _instance(**settings) -> AnimationInstance:
    settings.setdefault("frame_step", 0.0)
    return AnimationInstance("n", _slide(), AnimationSettings(**settings), start_time=0.0)


def _spin() -> KeyframeDefinition:
    return KeyframeDefinition.from_mapping(
        "spin",
        {
            "0%": {"transform": "rotate(0deg)"},
            "50%": {"transform": "rotate(180deg)"},
            "100%": {"transform": "rotate(360deg)"},
        },
    )


# ---------------------------------------------------------------------------
# Animation progress
# ---------------------------------------------------------------------------


class TestProgress:
    def test_linear_progress(self):
        inst = _instance(duration=1000)
        assert inst.progress_at(0) == 0.0
        assert inst.progress_at(250) == 0.25
        assert inst.state is AnimationState.RUNNING

    def test_finished_holds_last_frame_with_forwards(self):
        inst = _instance(duration=1000)
        assert inst.progress_at(1500) == 1.0
        assert inst.state is AnimationState.FINISHED

    def test_finished_without_fill_shows_base(self):
        inst = _instance(duration=1000, fill_mode=FillMode.NONE)
        assert inst.progress_at(1000) is None

    def test_fractional_iterations_end_mid_cycle(self):
        inst = _instance(duration=1000, iteration_count=1.5)
        assert inst.progress_at(2000) == pytest.approx(0.5)

    def test_infinite_wraps(self):
        inst = _instance(duration=1000, iteration_count=math.inf)
        assert inst.progress_at(1000) == 0.0
        assert inst.progress_at(2250) == 0.25
        assert inst.state is AnimationState.RUNNING

    def test_delay_pending(self):
        inst = _instance(duration=1000, delay=500)
        assert inst.progress_at(100) is None
        assert inst.state is AnimationState.PENDING

    def test_delay_backwards_fill(self):
        inst = _instance(duration=1000, delay=500, fill_mode=FillMode.BOTH)
        assert inst.progress_at(100) == 0.0

    def test_reverse(self):
        inst = _instance(duration=1000, direction=Direction.REVERSE)
        assert inst.progress_at(250) == 0.75

    def test_alternate(self):
        inst = _instance(duration=1000, iteration_count=math.inf, direction=Direction.ALTERNATE)
        assert inst.progress_at(250) == 0.25
        assert inst.progress_at(1250) == 0.75

    def test_alternate_reverse(self):
        inst = _instance(
            duration=1000, iteration_count=math.inf, direction=Direction.ALTERNATE_REVERSE
        )
        assert inst.progress_at(250) == 0.75
        assert inst.progress_at(1250) == 0.25

    def test_zero_duration_jumps_to_end(self):
        inst = _instance(duration=0)
        assert inst.progress_at(0) == 1.0

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError):
            AnimationSettings(duration=-1)
        with pytest.raises(ValueError):
            AnimationSettings(duration=1, frame_step=-1)


class TestSequencedSegments:
    def _spin(self, **settings) -> AnimationInstance:
        return AnimationInstance(
            "n", _spin(), AnimationSettings(duration=1000, **settings), start_time=0.0
        )

    def test_boundaries_and_cycle(self):
        inst = self._spin(iteration_count=math.inf)
        assert inst.boundaries == (0.0, 0.5, 1.0)
        assert inst.cycle == 1002

    def test_next_segment_starts_one_frame_later(self):
        inst = self._spin(iteration_count=math.inf)
        assert inst.progress_at(250) == 0.25
        assert inst.progress_at(500) == 0.5
        assert inst.progress_at(501) == 0.5
        assert inst.progress_at(750) == pytest.approx(0.749)
        assert inst.progress_at(1001) == 1.0

    def test_next_iteration_starts_one_frame_later(self):
        inst = self._spin(iteration_count=math.inf)
        assert inst.progress_at(1002) == 0.0
        assert inst.progress_at(1252) == 0.25

    def test_hold_inside_a_wide_frame(self):
        inst = self._spin(iteration_count=math.inf, frame_step=10)
        assert inst.progress_at(505) == 0.5
        assert inst.progress_at(510) == 0.5
        assert inst.progress_at(760) == 0.75

    def test_finishes_when_last_segment_completes(self):
        inst = self._spin()
        assert inst.progress_at(1000) == pytest.approx(0.999)
        assert inst.state is AnimationState.RUNNING
        assert inst.progress_at(1001) == 1.0
        assert inst.state is AnimationState.FINISHED

    def test_sampled_values(self):
        scheduler = Scheduler()
        scheduler.start_animation(
            "n", _spin(), AnimationSettings(duration=1000, iteration_count=math.inf)
        )
        scheduler.advance(501)
        assert scheduler.sample("n", {}).values["transform"] == parse_value("rotate(180deg)")
        scheduler.advance(1001)
        assert scheduler.sample("n", {}).values["transform"] == parse_value("rotate(360deg)")


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class TestScheduler:
    def test_clock_is_monotonic(self):
        scheduler = Scheduler()
        scheduler.advance(10)
        with pytest.raises(ValueError):
            scheduler.advance(5)

    def test_same_name_replaces(self):
        scheduler = Scheduler()
        first, replaced = scheduler.start_animation("n", _slide(), AnimationSettings(duration=1000))
        assert replaced is None
        scheduler.advance(500)
        second, replaced = scheduler.start_animation("n", _slide(), AnimationSettings(duration=1000))
        assert replaced is first
        assert second.start_time == 500
        assert scheduler.animations("n") == [second]

    def test_sample_applies_animation(self):
        scheduler = Scheduler()
        scheduler.start_animation("n", _slide(), AnimationSettings(duration=1000))
        scheduler.advance(500)
        sample = scheduler.sample("n", {})
        assert sample.values == {"marginLeft": Percentage(50)}
        assert sample.driven == {"marginLeft"}

    def test_finish_reported_once(self):
        scheduler = Scheduler()
        scheduler.start_animation("n", _slide(), AnimationSettings(duration=100))
        scheduler.advance(150)
        assert scheduler.sample("n", {}).finished == ["slide"]
        scheduler.advance(200)
        assert scheduler.sample("n", {}).finished == []

    def test_later_animation_wins(self):
        other = KeyframeDefinition.from_mapping(
            "other", {"from": {"marginLeft": "0%"}, "to": {"marginLeft": "10%"}}
        )
        scheduler = Scheduler()
        scheduler.start_animation("n", other, AnimationSettings(duration=1000))
        scheduler.start_animation("n", _slide(), AnimationSettings(duration=1000))
        scheduler.advance(500)
        assert scheduler.sample("n", {}).values["marginLeft"] == Percentage(50)
        scheduler.order_animations("n", ["slide", "other"])
        assert scheduler.sample("n", {}).values["marginLeft"] == Percentage(5)

    def test_cancel_and_remove(self):
        scheduler = Scheduler()
        scheduler.start_animation("n", _slide(), AnimationSettings(duration=1000))
        scheduler.start_transition("n", "opacity", Scalar(0), Scalar(1), 1000)
        assert scheduler.nodes() == ["n"]
        assert scheduler.cancel_animation("n", "slide")
        assert not scheduler.cancel_animation("n", "slide")
        scheduler.remove_node("n")
        assert not scheduler.has_instances("n")
        assert scheduler.nodes() == []

    def test_finished_without_fill_is_removed(self):
        scheduler = Scheduler()
        scheduler.start_animation(
            "a", _slide(), AnimationSettings(duration=100, fill_mode=FillMode.NONE)
        )
        scheduler.advance(10000)
        sample = scheduler.sample("a", {})
        assert sample.finished == ["slide"]
        assert sample.values == {}
        assert scheduler.animations("a") == []
        assert scheduler.nodes() == []
        assert not scheduler.has_instances("a")

    def test_forwards_fill_holds_but_is_not_live(self):
        scheduler = Scheduler()
        scheduler.start_animation("a", _slide(), AnimationSettings(duration=100))
        scheduler.advance(10000)
        assert scheduler.sample("a", {}).values == {"marginLeft": Percentage(0)}
        assert [a.name for a in scheduler.animations("a")] == ["slide"]
        assert scheduler.nodes() == []
        assert not scheduler.has_instances("a")
        assert scheduler.sample("a", {}).values == {"marginLeft": Percentage(0)}


class TestTransitions:
    def test_value_over_time(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "color", parse_value("red"), parse_value("blue"), 1000)
        scheduler.advance(500)
        sample = scheduler.sample("n", {})
        assert sample.values["color"] == Color(127.5, 0, 127.5, 1)
        assert sample.driven == {"color"}

    def test_completes_and_drops(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "opacity", Scalar(0), Scalar(1), 1000)
        scheduler.advance(1000)
        sample = scheduler.sample("n", {"opacity": Scalar(1)})
        assert sample.completed_transitions == ["opacity"]
        assert "opacity" not in sample.values
        assert scheduler.transitions("n") == []

    def test_delay_holds_start_value(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "opacity", Scalar(0), Scalar(1), 1000, delay=500)
        scheduler.advance(250)
        assert scheduler.sample("n", {}).values["opacity"] == Scalar(0)

    def test_interrupt_starts_from_current_value(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "opacity", Scalar(0), Scalar(1), 1000)
        scheduler.advance(500)
        replacement = scheduler.start_transition("n", "opacity", Scalar(1), Scalar(0), 1000)
        assert replacement.from_value == Scalar(0.5)
        scheduler.advance(1000)
        assert scheduler.sample("n", {}).values["opacity"] == Scalar(0.25)

    def test_interrupt_reads_current_value_with_layout(self):
        scheduler = Scheduler()
        scheduler.start_transition(
            "n", "transform", parse_value("translateX(0px)"), parse_value("translateX(50%)"), 1000
        )
        scheduler.advance(500)
        replacement = scheduler.start_transition(
            "n",
            "transform",
            parse_value("translateX(50%)"),
            parse_value("translateX(0px)"),
            1000,
            layout=LayoutBox(200, 100),
        )
        assert replacement.from_value == TransformList(
            (TransformFunction("translateX", (Scalar(50),)),)
        )

    def test_cancel_transition(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "opacity", Scalar(0), Scalar(1), 1000)
        assert scheduler.cancel_transition("n", "opacity")
        assert not scheduler.cancel_transition("n", "opacity")
        assert scheduler.transitions("n") == []
        assert "opacity" not in scheduler.sample("n", {}).values

    def test_unsupported_pair_cancels(self):
        scheduler = Scheduler()
        scheduler.start_transition("n", "display", parse_value("flex"), parse_value("block"), 1000)
        scheduler.advance(100)
        sample = scheduler.sample("n", {})
        assert "display" not in sample.values
        assert len(sample.errors) == 1
        assert scheduler.transitions("n") == []
