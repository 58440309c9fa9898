"""Tests for index and time range slicing."""

from presetcompose.diagnostics import RANGE_INVALID
from presetcompose.ranges import (
    apply_index_range,
    apply_range,
    apply_time_range,
    classify_range,
)


def _caption(text, start, end, absolute=True):
    if absolute:
        return {"text": text, "absoluteStart": start, "absoluteEnd": end}
    return {"text": text, "start": start, "end": end}


def _texts(captions):
    return [c["text"] for c in captions]


class TestClassifyRange:
    def test_time(self):
        assert classify_range("0:10-0:20") == "time"

    def test_time_two_digit_minutes(self):
        assert classify_range("12:00-13:30") == "time"

    def test_index(self):
        assert classify_range("1-2") == "index"

    def test_unknown(self):
        assert classify_range("first-last") == "unknown"

    def test_three_digit_minutes_is_unknown(self):
        assert classify_range("100:00-101:00") == "unknown"


class TestApplyIndexRange:
    def test_inclusive_both_ends(self):
        assert apply_index_range([10, 20, 30, 40], "1-2") == [20, 30]

    def test_single_item(self):
        assert apply_index_range([10, 20, 30], "0-0") == [10]

    def test_whole_list(self):
        assert apply_index_range([10, 20, 30], "0-2") == [10, 20, 30]

    def test_end_out_of_bounds_returns_original(self):
        items = [10, 20, 30]
        diags = []
        assert apply_index_range(items, "1-3", diags) is items
        assert diags[0].kind == RANGE_INVALID

    def test_start_after_end_returns_original(self):
        items = [10, 20, 30]
        assert apply_index_range(items, "2-1") is items

    def test_malformed_returns_original(self):
        items = [1, 2]
        diags = []
        assert apply_index_range(items, "a-b", diags) is items
        assert len(diags) == 1


class TestApplyTimeRange:
    def test_overlap_filter(self):
        captions = [
            _caption("before", 0, 5),
            _caption("touching-start", 5, 10),
            _caption("inside", 12, 15),
            _caption("straddles-end", 18, 25),
            _caption("touching-end", 20, 30),
        ]
        result = apply_time_range(captions, "0:10-0:20")
        assert _texts(result) == ["inside", "straddles-end"]

    def test_caption_spanning_whole_range(self):
        result = apply_time_range([_caption("long", 0, 100)], "0:10-0:20")
        assert _texts(result) == ["long"]

    def test_falls_back_to_start_end(self):
        captions = [_caption("relative", 11, 12, absolute=False)]
        assert _texts(apply_time_range(captions, "0:10-0:20")) == ["relative"]

    def test_absolute_fields_preferred(self):
        caption = {"text": "both", "start": 0, "end": 1, "absoluteStart": 15, "absoluteEnd": 16}
        assert _texts(apply_time_range([caption], "0:10-0:20")) == ["both"]

    def test_caption_without_timing_excluded(self):
        assert apply_time_range([{"text": "untimed"}], "0:00-1:00") == []

    def test_minutes_converted(self):
        captions = [_caption("a", 59, 61), _caption("b", 125, 130)]
        assert _texts(apply_time_range(captions, "1:00-2:00")) == ["a"]

    def test_invalid_range_returns_original(self):
        captions = [_caption("a", 0, 1)]
        diags = []
        assert apply_time_range(captions, "1-2", diags) is captions
        assert diags[0].range == "1-2"


class TestApplyRange:
    def test_list_index(self):
        assert apply_range(["a", "b", "c"], "1-2") == ["b", "c"]

    def test_list_time(self):
        captions = [_caption("a", 0, 5), _caption("b", 30, 35)]
        assert _texts(apply_range(captions, "0:00-0:10")) == ["a"]

    def test_caption_mapping_keeps_shape(self):
        value = {"language": "en", "captions": [_caption("a", 0, 5), _caption("b", 30, 35)]}
        result = apply_range(value, "0:25-0:40")
        assert result["language"] == "en"
        assert _texts(result["captions"]) == ["b"]
        assert len(value["captions"]) == 2

    def test_unknown_range_returns_value(self):
        diags = []
        assert apply_range([1, 2], "soon", diags) == [1, 2]
        assert diags[0].kind == RANGE_INVALID

    def test_scalar_value_unchanged(self):
        diags = []
        assert apply_range(42, "1-2", diags) == 42
        assert len(diags) == 1
