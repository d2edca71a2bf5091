"""Tests for the textgrid-wide modifiers (crop, erase, shift, append, merge)."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tiergrid.annotation import (
    IncorrectArgumentError, Interval, IntervalTier, NonMatchingTiersError,
    OvershootModificationError, Point, PointTier, Textgrid,
)


def _labels(tier):
    return [entry[-1] for entry in tier.entries]


def test_crop_textgrid(prefab_textgrid):
    """Every tier is cropped and takes the crop range."""
    cropped = prefab_textgrid.crop(1.0, 4.0)

    assert (cropped.min_timestamp, cropped.max_timestamp) == (1.0, 4.0)
    assert cropped.tier_names == prefab_textgrid.tier_names
    assert cropped.get_tier('speaker 1').entries[0] == Interval(1.0, 1.02, 'Ichiro')
    assert cropped.get_tier('speaker 2').entries[-1] == Interval(3.98, 4.0, 'Fred')
    assert _labels(cropped.get_tier('pitch vals 2')) == ['140']
    # Source untouched
    assert prefab_textgrid.min_timestamp == 0.73


def test_crop_textgrid_rebase_to_zero(prefab_textgrid):
    """Rebasing moves the crop start to zero."""
    cropped = prefab_textgrid.crop(1.0, 4.0, 'truncated', True)
    assert cropped.min_timestamp == 0.0
    assert cropped.max_timestamp == pytest.approx(3.0)
    assert cropped.get_tier('noises').entries[0].time == pytest.approx(1.29)

    strict = prefab_textgrid.crop(1.1, 1.5, 'strict', True)
    assert strict.min_timestamp == 0
    assert strict.max_timestamp == pytest.approx(0.4)


def test_crop_textgrid_without_tiers():
    """With no tiers to take it from, the crop region becomes the range."""
    cropped = Textgrid().crop(1.0, 2.5)
    assert cropped.num_tiers == 0
    assert (cropped.min_timestamp, cropped.max_timestamp) == (1.0, 2.5)


def test_erase_region(prefab_textgrid):
    """Without shrinking the region is blanked and the range kept."""
    erased = prefab_textgrid.erase_region(1.11, 4.3)

    assert (erased.min_timestamp, erased.max_timestamp) == (0.73, 4.53)
    assert erased.get_tier('speaker 1').entries == [
        Interval(0.73, 1.02, 'Ichiro'), Interval(1.02, 1.11, 'hit'),
    ]
    assert erased.get_tier('speaker 2').entries == [
        Interval(4.3, 4.44, 'caught'), Interval(4.44, 4.53, 'it'),
    ]
    assert erased.get_tier('pitch vals 1').entries == [Point(0.9, '120'), Point(1.11, '100')]
    assert erased.get_tier('pitch vals 2').entries == [Point(4.32, '135'), Point(4.49, '120')]
    assert erased.get_tier('noises').entries == []


def test_erase_region_and_shrink(prefab_textgrid):
    """Shrinking pulls everything after the region back."""
    erased = prefab_textgrid.erase_region(1.11, 4.3, do_shrink=True)

    assert erased.min_timestamp == 0.73
    assert erased.max_timestamp == pytest.approx(1.34)

    speaker2 = erased.get_tier('speaker 2').entries
    assert [entry.label for entry in speaker2] == ['caught', 'it']
    assert speaker2[0].start == pytest.approx(1.11)
    assert speaker2[0].end == pytest.approx(1.25)
    assert speaker2[1].end == pytest.approx(1.34)

    assert erased.get_tier('noises').entries == []


def test_erase_region_from_start(prefab_textgrid):
    """A region reaching past the start is cut off the front."""
    erased = prefab_textgrid.erase_region(0, 1.5, do_shrink=True)

    assert erased.min_timestamp == 0
    assert erased.max_timestamp == pytest.approx(3.03)

    speaker1 = erased.get_tier('speaker 1').entries
    assert [entry.label for entry in speaker1] == ['a', 'homerun']
    assert speaker1[0].start == pytest.approx(0.0)
    assert speaker1[0].end == pytest.approx(0.04)
    assert speaker1[1].end == pytest.approx(0.41)

    assert erased.get_tier('speaker 2').entries[0].start == pytest.approx(2.06)
    assert erased.get_tier('pitch vals 1').entries[0].time == pytest.approx(0.29)
    assert erased.get_tier('noises').entries[0].time == pytest.approx(0.79)


def test_erase_everything(prefab_textgrid):
    """Erasing the whole range leaves empty tiers."""
    erased = prefab_textgrid.erase_region(0, 10)
    assert all(tier.entries == [] for tier in erased.tiers)
    assert (erased.min_timestamp, erased.max_timestamp) == (0.73, 4.53)


def test_tier_erase_region_policies(interval_tier):
    """Straddling entries are truncated or dropped."""
    truncated = interval_tier.erase_region(1.0, 1.4)
    assert truncated.entries == [
        Interval(0.73, 1.0, 'Ichiro'), Interval(1.4, 1.54, 'a'), Interval(1.54, 1.91, 'homerun'),
    ]
    assert (truncated.min_timestamp, truncated.max_timestamp) == (0.73, 1.91)

    strict = interval_tier.erase_region(1.0, 1.4, collision_policy='strict')
    assert strict.entries == [Interval(1.54, 1.91, 'homerun')]

    shrunk = interval_tier.erase_region(1.0, 1.4, do_shrink=True)
    assert shrunk.max_timestamp == pytest.approx(1.51)
    assert shrunk.entries[1].start == pytest.approx(1.0)
    assert shrunk.entries[1].end == pytest.approx(1.14)

    with pytest.raises(IncorrectArgumentError):
        interval_tier.erase_region(1.0, 1.4, collision_policy='lax')


def test_tier_insert_space_policies(interval_tier):
    """Stretch, split or leave the interval straddling the insert point."""
    stretched = interval_tier.insert_space(1.5, 1.0, 'stretch')
    assert stretched.entries[2].start == 1.33
    assert stretched.entries[2].end == pytest.approx(2.54)
    assert stretched.entries[3].start == pytest.approx(2.54)
    assert stretched.entries[3].end == pytest.approx(2.91)
    assert stretched.max_timestamp == pytest.approx(2.91)

    split = interval_tier.insert_space(1.5, 1.0, 'split')
    assert _labels(split) == ['Ichiro', 'hit', 'a', 'a', 'homerun']
    assert split.entries[2] == Interval(1.33, 1.5, 'a')
    assert split.entries[3].start == pytest.approx(2.5)
    assert split.entries[3].end == pytest.approx(2.54)

    unchanged = interval_tier.insert_space(1.5, 1.0, 'no change')
    assert unchanged.entries[2] == Interval(1.33, 1.54, 'a')
    assert unchanged.entries[3].start == pytest.approx(2.54)

    with pytest.raises(IncorrectArgumentError):
        interval_tier.insert_space(1.5, 1.0)


def test_point_tier_insert_space(point_tier):
    """Points at or before the insert point stay put."""
    shifted = point_tier.insert_space(1.11, 0.5)
    assert [entry.time for entry in shifted.entries] == pytest.approx([0.9, 1.11, 1.91, 2.29])
    assert shifted.max_timestamp == pytest.approx(2.29)


def test_insert_space_textgrid(prefab_textgrid):
    """The textgrid grows by the inserted duration."""
    spaced = prefab_textgrid.insert_space(2.0, 1.0, 'stretch')

    assert spaced.min_timestamp == 0.73
    assert spaced.max_timestamp == pytest.approx(5.53)
    assert [entry.time for entry in spaced.get_tier('noises').entries] == pytest.approx([3.29, 3.99])
    assert spaced.get_tier('speaker 1').entries == prefab_textgrid.get_tier('speaker 1').entries
    for tier in spaced.tiers:
        assert tier.max_timestamp == pytest.approx(5.53)


def test_edit_textgrid_timestamps(prefab_textgrid):
    """Shifting past the end needs allow_overshoot."""
    with pytest.raises(OvershootModificationError):
        prefab_textgrid.edit_timestamps(0.5)

    shifted = prefab_textgrid.edit_timestamps(0.5, allow_overshoot=True)
    assert shifted.min_timestamp == 0.73
    assert shifted.max_timestamp == pytest.approx(5.03)
    assert shifted.get_tier('speaker 1').entries[0].start == pytest.approx(1.23)

    back = prefab_textgrid.edit_timestamps(-0.1, allow_overshoot=True)
    assert back.min_timestamp == pytest.approx(0.63)


def _append_fixtures():
    tg_a = Textgrid()
    tg_a.add_tier(IntervalTier('speaker 1', [(0.8, 1.2, 'blue'), (2.3, 2.56, 'skies')]))
    tg_a.add_tier(PointTier('points 1', [(0.91, 'point 1'), (2.41, 'point 2')]))
    tg_a.add_tier(IntervalTier('speaker 2', [(1.8, 2.4, 'grip'), (2.9, 3.1, 'cheese')]))

    tg_b = Textgrid()
    tg_b.add_tier(IntervalTier('speaker 1', [(0.31, 0.52, 'green'), (1.24, 1.91, 'fields')]))
    tg_b.add_tier(PointTier('points 1', [(0.5, 'point 1'), (1.44, 'point 2')]))
    return tg_a, tg_b


def test_append_textgrid():
    """The second textgrid follows the first."""
    tg_a, tg_b = _append_fixtures()
    combined = tg_a.append_textgrid(tg_b, only_matching_names=False)

    assert combined.tier_names == ['speaker 1', 'points 1', 'speaker 2']
    assert combined.min_timestamp == 0.8
    assert combined.max_timestamp == pytest.approx(5.01)

    speaker1 = combined.get_tier('speaker 1').entries
    assert _labels(combined.get_tier('speaker 1')) == ['blue', 'skies', 'green', 'fields']
    assert speaker1[2].start == pytest.approx(0.31 + 3.1)
    assert speaker1[3].end == pytest.approx(1.91 + 3.1)

    points = combined.get_tier('points 1').entries
    assert points[2].time == pytest.approx(0.5 + 3.1)

    assert combined.get_tier('speaker 2').entries == [
        Interval(1.8, 2.4, 'grip'), Interval(2.9, 3.1, 'cheese'),
    ]


def test_append_textgrid_inverted_order():
    """Tiers missing from the first textgrid are shifted too."""
    tg_a, tg_b = _append_fixtures()
    combined = tg_b.append_textgrid(tg_a, only_matching_names=False)

    assert combined.num_tiers == 3
    assert combined.min_timestamp == 0.31
    assert combined.max_timestamp == pytest.approx(5.01)

    speaker1 = combined.get_tier('speaker 1').entries
    assert _labels(combined.get_tier('speaker 1')) == ['green', 'fields', 'blue', 'skies']
    assert speaker1[2].start == pytest.approx(0.8 + 1.91)

    speaker2 = combined.get_tier('speaker 2').entries
    assert speaker2[0].start == pytest.approx(1.8 + 1.91)
    assert speaker2[1].end == pytest.approx(3.1 + 1.91)
    assert combined.get_tier('speaker 2').min_timestamp == 0.31


def test_append_textgrid_only_matching_names():
    """Tiers found in only one textgrid are dropped."""
    tg_a, tg_b = _append_fixtures()
    tg_b.add_tier(PointTier('points 2', [(2.1, 'point 3'), (2.33, 'point 4')]))

    combined = tg_a.append_textgrid(tg_b, only_matching_names=True)
    assert combined.tier_names == ['speaker 1', 'points 1']
    assert len(combined.get_tier('speaker 1').entries) == 4
    assert len(combined.get_tier('points 1').entries) == 4


def test_append_textgrid_type_mismatch():
    """Tiers sharing a name must share a type."""
    tg_a = Textgrid()
    tg_a.add_tier(IntervalTier('x', [(0, 1, 'a')]))
    tg_b = Textgrid()
    tg_b.add_tier(PointTier('x', [(0.5, 'b')]))

    with pytest.raises(NonMatchingTiersError):
        tg_a.append_textgrid(tg_b)


def test_merge_tiers(prefab_textgrid):
    """All interval tiers become one, as do all point tiers."""
    merged = prefab_textgrid.merge_tiers()

    assert merged.tier_names == ['merged intervals', 'merged points']
    assert len(merged.get_tier('merged intervals').entries) == 8
    assert len(merged.get_tier('merged points').entries) == 10
    assert (merged.min_timestamp, merged.max_timestamp) == (0.73, 4.53)
    # Source untouched
    assert prefab_textgrid.num_tiers == 5
    assert len(prefab_textgrid.get_tier('speaker 1').entries) == 4


def test_merge_some_tiers(prefab_textgrid):
    """Unmerged tiers are kept after the merged ones, unless asked not to."""
    names = ['speaker 1', 'speaker 2', 'pitch vals 1', 'pitch vals 2']
    merged = prefab_textgrid.merge_tiers(names)
    assert merged.tier_names == ['merged intervals', 'merged points', 'noises']

    dropped = prefab_textgrid.merge_tiers(names, preserve_other_tiers=False)
    assert dropped.num_tiers == 2

    only_points = prefab_textgrid.merge_tiers(['pitch vals 1', 'noises'],
                                              point_tier_name='events')
    assert only_points.tier_names == ['events', 'speaker 1', 'speaker 2', 'pitch vals 2']


def test_merge_overlapping_tiers():
    """Overlapping intervals from different tiers are joined."""
    tg = Textgrid()
    tg.add_tier(IntervalTier('a', [(0.0, 1.0, 'x')]))
    tg.add_tier(IntervalTier('b', [(0.5, 2.0, 'y')]))

    merged = tg.merge_tiers()
    assert merged.get_tier('merged intervals').entries == [Interval(0.0, 2.0, 'x-y')]


def test_tier_difference():
    """Spans covered by the other tier are cut out."""
    tier_a = IntervalTier('TierA', [
        (0.7, 1.0, '1a'), (1.23, 1.44, '2a'), (1.95, 2.05, '3a'),
    ], 0, 2.5)
    tier_b = IntervalTier('TierB', [
        (0.1, 0.4, '1b'), (1.3, 1.35, '2b'), (2.0, 2.43, '3b'),
    ], 0, 2.5)

    difference = tier_a.difference(tier_b)
    assert difference.name == 'TierA'
    assert difference.entries == [
        Interval(0.7, 1.0, '1a'), Interval(1.23, 1.3, '2a'),
        Interval(1.35, 1.44, '2a'), Interval(1.95, 2.0, '3a'),
    ]
    assert (difference.min_timestamp, difference.max_timestamp) == (0, 2.5)


def test_tier_intersection():
    """Shared spans are labelled with both labels."""
    tier_a = IntervalTier('TierA', [
        (0.7, 1.0, '1a'), (1.23, 1.44, '2a'), (1.95, 2.05, '3a'),
    ], 0, 2.5)
    tier_b = IntervalTier('TierB', [
        (0.1, 0.4, '1b'), (1.23, 1.44, '2b'), (1.5, 1.8, '3b'), (2.0, 2.43, '4b'),
    ], 0, 2.5)

    intersection = tier_a.intersection(tier_b)
    assert intersection.name == 'TierA-TierB'
    assert intersection.entries == [
        Interval(1.23, 1.44, '2a-2b'), Interval(2.0, 2.05, '3a-4b'),
    ]
