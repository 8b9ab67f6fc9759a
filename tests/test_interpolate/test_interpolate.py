"""Tests for value interpolation and keyframe sampling."""

import pytest

from stylemotion.easing import CubicBezier, Linear
from stylemotion.errors import (
    InvalidCurveError,
    MissingLayoutWarning,
    UndefinedVariableError,
    UnsupportedInterpolationError,
)
from stylemotion.interpolate import (
    interpolate_keyframes,
    interpolate_values,
    resolve_layout_percentages,
)
from stylemotion.model.keyframes import KeyframeDefinition, KeyframeStop, parse_offsets
from stylemotion.model.snapshot import LayoutBox
from stylemotion.model.values import Angle, Color, Percentage, Raw, Scalar
from stylemotion.values import format_value, parse_value


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lerp(prop: str, a: str, b: str, t: float, layout=None):
    return interpolate_values(prop, parse_value(a), parse_value(b), t, layout)


def _bounce() -> KeyframeDefinition:
    return KeyframeDefinition.from_mapping(
        "bounce",
        {
            "0%, 100%": {
                "transform": "translateY(-25%)",
                "animationTimingFunction": "cubic-bezier(0.8,0,1,1)",
            },
            "50%": {
                "transform": "none",
                "animationTimingFunction": "cubic-bezier(0,0,0.2,1)",
            },
        },
    )


# ---------------------------------------------------------------------------
# Value pairs
# ---------------------------------------------------------------------------


class TestInterpolateValues:
    def test_scalar_same_unit(self):
        assert _lerp("width", "10px", "20px", 0.5) == Scalar(15, "px")

    def test_scalar_unitless_zero(self):
        assert _lerp("width", "0", "20px", 0.25) == Scalar(5, "px")

    def test_scalar_mixed_units(self):
        with pytest.raises(UnsupportedInterpolationError):
            _lerp("width", "10px", "2em", 0.5)

    def test_percentage(self):
        assert _lerp("marginLeft", "100%", "0%", 0.5) == Percentage(50)

    def test_angle_same_unit(self):
        assert _lerp("transform", "rotate(0deg)", "rotate(360deg)", 0.25) == parse_value(
            "rotate(90deg)"
        )

    def test_angle_mixed_units(self):
        value = interpolate_values("x", Angle(0, "deg"), Angle(0.5, "turn"), 0.5)
        assert value == Angle(90, "deg")

    def test_color_channels(self):
        value = _lerp("color", "red", "blue", 0.5)
        assert value == Color(127.5, 0, 127.5, 1)
        assert format_value(value) == "rgba(128, 0, 128, 1)"

    def test_color_alpha(self):
        value = _lerp("color", "transparent", "black", 0.25)
        assert value.a == pytest.approx(0.25)

    def test_equal_values_short_circuit(self):
        assert _lerp("display", "flex", "flex", 0.5) == Raw("flex")

    def test_keyword_pair_unsupported(self):
        with pytest.raises(UnsupportedInterpolationError) as info:
            _lerp("display", "flex", "block", 0.5)
        assert info.value.property == "display"

    def test_function_same_shape(self):
        value = _lerp("filter", "blur(0px)", "blur(10px)", 0.5)
        assert format_value(value) == "blur(5px)"

    def test_transform_list_pairwise(self):
        value = _lerp("transform", "translateX(0px) scale(1)", "translateX(10px) scale(3)", 0.5)
        assert format_value(value) == "translateX(5px) scale(2)"

    def test_transform_to_none_uses_identity(self):
        value = _lerp("transform", "scale(3)", "none", 0.5)
        assert format_value(value) == "scale(2)"

    def test_none_to_transform_uses_identity(self):
        value = _lerp("transform", "none", "rotate(90deg)", 0.5)
        assert value == parse_value("rotate(45deg)")

    def test_mismatched_transform_lists(self):
        with pytest.raises(UnsupportedInterpolationError):
            _lerp("transform", "rotate(90deg)", "scale(2)", 0.5)

    def test_mismatched_transform_length(self):
        with pytest.raises(UnsupportedInterpolationError):
            _lerp("transform", "rotate(90deg)", "rotate(90deg) scale(2)", 0.5)

    def test_translate_percentage_to_pixels(self):
        layout = LayoutBox(200, 100)
        value = _lerp("transform", "translateY(-50%)", "translateY(10px)", 0.5, layout)
        assert value == parse_value("translateY(-20)")


# ---------------------------------------------------------------------------
# Keyframe definitions
# ---------------------------------------------------------------------------


class TestKeyframeDefinition:
    def test_offsets(self):
        assert parse_offsets("from") == [0.0]
        assert parse_offsets("to") == [1.0]
        assert parse_offsets("0%, 100%") == [0.0, 1.0]

    def test_invalid_selector(self):
        with pytest.raises(ValueError):
            parse_offsets("halfway")

    def test_stops_sorted_and_merged(self):
        definition = KeyframeDefinition.from_mapping(
            "x",
            {
                "100%": {"opacity": "1"},
                "0%": {"opacity": "0"},
                "to": {"width": "10px"},
            },
        )
        assert [s.offset for s in definition.stops] == [0.0, 1.0]
        assert definition.stop_at(1.0).properties == ["opacity", "width"]

    def test_timing_is_not_a_property(self):
        definition = _bounce()
        assert definition.properties == ["transform"]
        assert definition.stop_at(0.5).timing_function is not None

    def test_offset_out_of_range(self):
        with pytest.raises(ValueError):
            KeyframeDefinition("bad", (KeyframeStop(1.5, ()),))


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------


class TestInterpolateKeyframes:
    def test_exact_stop_returns_literal(self):
        definition = KeyframeDefinition.from_mapping(
            "x", {"from": {"display": "flex"}, "50%": {"display": "none"}, "to": {"display": "flex"}}
        )
        assert interpolate_keyframes(definition, 0.5).values["display"] == Raw("none")

    def test_none_stop_in_transform_track_is_identity(self):
        sample = interpolate_keyframes(_bounce(), 0.5)
        assert sample.values["transform"] == parse_value("translateY(0%)")

    def test_stop_values_go_through_resolver(self):
        definition = KeyframeDefinition.from_mapping(
            "spin", {"from": {"transform": "rotate(0deg)"}, "to": {"transform": "rotate(var(--deg))"}}
        )
        seen = []

        def resolve(value):
            seen.append(value)
            return parse_value("rotate(90deg)")

        sample = interpolate_keyframes(definition, 0.5, resolve=resolve)
        assert sample.values["transform"] == parse_value("rotate(45deg)")
        assert seen == [parse_value("rotate(var(--deg))")]

    def test_resolver_failure_drops_property_only(self):
        definition = KeyframeDefinition.from_mapping(
            "x",
            {"from": {"width": "0px", "opacity": "0"}, "to": {"width": "var(--w)", "opacity": "1"}},
        )

        def resolve(value):
            raise UndefinedVariableError("--w")

        sample = interpolate_keyframes(definition, 0.5, resolve=resolve)
        assert "width" not in sample.values
        assert sample.values["opacity"] == Scalar(0.5)
        assert isinstance(sample.errors[0], UndefinedVariableError)
        assert sample.errors[0].property == "width"

    def test_missing_start_uses_base(self):
        definition = KeyframeDefinition.from_mapping("spin", {"to": {"transform": "rotate(360deg)"}})
        base = {"transform": parse_value("rotate(180deg)")}
        sample = interpolate_keyframes(definition, 0.5, base)
        assert sample.values["transform"] == parse_value("rotate(270deg)")

    def test_missing_start_without_base_uses_neutral(self):
        definition = KeyframeDefinition.from_mapping("spin", {"to": {"transform": "rotate(360deg)"}})
        assert interpolate_keyframes(definition, 0.0).values["transform"] == parse_value(
            "rotate(0deg)"
        )
        assert interpolate_keyframes(definition, 0.5).values["transform"] == parse_value(
            "rotate(180deg)"
        )

    def test_missing_end_uses_base(self):
        definition = KeyframeDefinition.from_mapping("fade", {"from": {"opacity": "0"}})
        sample = interpolate_keyframes(definition, 0.5, {"opacity": Scalar(1)})
        assert sample.values["opacity"] == Scalar(0.5)

    def test_per_stop_timing_controls_segment(self):
        definition = KeyframeDefinition.from_mapping(
            "spin",
            {
                "0%": {"transform": "rotate(0deg)"},
                "50%": {
                    "transform": "rotate(180deg)",
                    "animationTimingFunction": "cubic-bezier(0,0,0.2,1)",
                },
                "100%": {"transform": "rotate(360deg)"},
            },
        )
        first = interpolate_keyframes(definition, 0.25).values["transform"]
        assert first == parse_value("rotate(90deg)")

        second = interpolate_keyframes(definition, 0.75).values["transform"]
        eased = CubicBezier(0, 0, 0.2, 1).evaluate(0.5)
        assert second.functions[0].args[0].number == pytest.approx(180 + 180 * eased)
        assert 330 < second.functions[0].args[0].number < 332

    def test_default_timing_applies_without_stop_timing(self):
        definition = KeyframeDefinition.from_mapping(
            "slide", {"from": {"marginLeft": "100%"}, "to": {"marginLeft": "0%"}}
        )
        sample = interpolate_keyframes(definition, 0.5, default_timing=Linear())
        assert sample.values["marginLeft"] == Percentage(50)

    def test_progress_is_clamped(self):
        definition = KeyframeDefinition.from_mapping(
            "slide", {"from": {"marginLeft": "100%"}, "to": {"marginLeft": "0%"}}
        )
        assert interpolate_keyframes(definition, 1.5).values["marginLeft"] == Percentage(0)

    def test_invalid_stop_timing_falls_back_to_linear(self):
        definition = KeyframeDefinition.from_mapping(
            "x",
            {
                "from": {"opacity": "0", "animationTimingFunction": "cubic-bezier(5,0,1,1)"},
                "to": {"opacity": "1"},
            },
        )
        sample = interpolate_keyframes(definition, 0.5)
        assert sample.values["opacity"] == Scalar(0.5)
        assert isinstance(sample.errors[0], InvalidCurveError)
        assert sample.errors[0].property == "opacity"

    def test_unsupported_pair_drops_property_only(self):
        definition = KeyframeDefinition.from_mapping(
            "x",
            {
                "from": {"display": "flex", "opacity": "0"},
                "to": {"display": "block", "opacity": "1"},
            },
        )
        sample = interpolate_keyframes(definition, 0.5)
        assert "display" not in sample.values
        assert sample.values["opacity"] == Scalar(0.5)
        assert isinstance(sample.errors[0], UnsupportedInterpolationError)

    def test_bounce_leaving_rest(self):
        layout = LayoutBox(200, 100)
        value = interpolate_keyframes(_bounce(), 0.501, layout=layout).values["transform"]
        resolved, _ = resolve_layout_percentages("transform", value, layout)
        assert resolved.functions[0].args[0].number == pytest.approx(0, abs=0.5)


# ---------------------------------------------------------------------------
# Layout-relative percentages
# ---------------------------------------------------------------------------


class TestResolveLayoutPercentages:
    def test_translate_y_uses_height(self):
        value, warnings = resolve_layout_percentages(
            "transform", parse_value("translateY(-25%)"), LayoutBox(200, 100)
        )
        assert value == parse_value("translateY(-25)")
        assert warnings == []

    def test_translate_uses_both_axes(self):
        value, _ = resolve_layout_percentages(
            "transform", parse_value("translate(50%, 50%)"), LayoutBox(200, 100)
        )
        assert format_value(value) == "translate(100, 50)"

    def test_missing_layout_resolves_to_zero_with_warning(self):
        value, warnings = resolve_layout_percentages(
            "transform", parse_value("translateY(-25%)"), None
        )
        assert value.functions[0].args[0].number == 0
        assert len(warnings) == 1
        assert isinstance(warnings[0], MissingLayoutWarning)

    def test_other_functions_untouched(self):
        value = parse_value("rotate(45deg)")
        assert resolve_layout_percentages("transform", value, None) == (value, [])

    def test_non_transform_untouched(self):
        assert resolve_layout_percentages("width", Percentage(50), None) == (Percentage(50), [])
