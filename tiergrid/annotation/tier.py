"""
Annotation tier data model.

A tier is one timeline of annotations. IntervalTier holds labelled
(start, end, label) spans; PointTier holds (time, label) events.

Every modifier (crop, erase_region, insert_space, edit_timestamps,
append_tier, union, difference, intersection) returns a new tier and
leaves the receiver untouched. Only insert_entry, delete_entry and
sort change a tier in place.

Usage:
    from tiergrid.annotation.tier import IntervalTier

    words = IntervalTier('words', [(0.73, 1.02, 'Ichiro'), (1.02, 1.231, 'hit')])
    cropped = words.crop(0.8, 1.1, 'truncated')
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple, Optional, Sequence

from .errors import (
    IncorrectArgumentError,
    NonMatchingTiersError,
    OvershootModificationError,
    TextgridCollisionError,
    TierCreationError,
    TierIndexError,
)
from .search_tree import build_tree, find_interval_at_time, find_point_at_time
from .utils import entry_time, intervals_overlap, is_close

logger = logging.getLogger(__name__)

INTERVAL_TIER = 'IntervalTier'
POINT_TIER = 'TextTier'

CROP_MODES = ['strict', 'lax', 'truncated']
ERASE_POLICIES = ['strict', 'truncated']
INSERT_SPACE_POLICIES = ['stretch', 'split', 'no change']
FIND_MODES = [None, 'exact', 'substr', 're']


class Interval(NamedTuple):
    """A labelled span in an interval tier."""
    start: float
    end: float
    label: str


class Point(NamedTuple):
    """A labelled instant in a point tier."""
    time: float
    label: str


class Tier:
    """Behaviour shared by point and interval tiers.

    Attributes:
        name: Tier name, unique within a Textgrid
        entries: Entries sorted by time
        min_timestamp: Start of the tier's visible range
        max_timestamp: End of the tier's visible range
    """

    tier_type = ''
    label_index = -1
    warn_on_collision = True

    def __init__(self, name: str, entries: Optional[Sequence] = None,
                 min_timestamp: Optional[float] = None,
                 max_timestamp: Optional[float] = None):
        self.name = name
        self.entries = [self._coerce_entry(entry) for entry in (entries or [])]

        starts = [self._entry_span(entry)[0] for entry in self.entries]
        ends = [self._entry_span(entry)[1] for entry in self.entries]
        if min_timestamp is not None:
            starts.append(float(min_timestamp))
        if max_timestamp is not None:
            ends.append(float(max_timestamp))

        # A tier needs a time range even when it is empty
        if not starts or not ends:
            raise TierCreationError('All textgrid tiers must have a min and max timestamp')

        self.min_timestamp = min(starts)
        self.max_timestamp = max(ends)
        self.sort()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}({self.name!r}, {len(self.entries)} entries, "
                f"{self.min_timestamp}-{self.max_timestamp})")

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    # Variant hooks

    def _coerce_entry(self, entry):
        raise NotImplementedError

    def _entry_span(self, entry) -> tuple[float, float]:
        raise NotImplementedError

    def _shift_entry(self, entry, offset: float):
        raise NotImplementedError

    def _find_matches(self, entry) -> list:
        raise NotImplementedError

    def _merge_entries(self, entry, matches: list):
        raise NotImplementedError

    def entries_are_equal(self, entry_a, entry_b) -> bool:
        raise NotImplementedError

    def crop(self, crop_start: float, crop_end: float, mode: str = 'truncated',
             rebase_to_zero: bool = False) -> 'Tier':
        raise NotImplementedError

    def insert_space(self, start: float, duration: float,
                     collision_policy: Optional[str] = None) -> 'Tier':
        raise NotImplementedError

    def get_entries_in_interval(self, start: float, stop: float) -> list:
        raise NotImplementedError

    # Shared operations

    def sort(self):
        """Sort entries by time in place (stable)."""
        self.entries.sort(key=entry_time)

    def new_copy(self, name: Optional[str] = None, entries: Optional[Sequence] = None,
                 min_timestamp: Optional[float] = None,
                 max_timestamp: Optional[float] = None) -> 'Tier':
        """Return a copy of this tier, optionally overriding some fields.

        Entries are immutable tuples, so copying the list is enough to
        keep the copy independent of this tier.
        """
        return type(self)(
            self.name if name is None else name,
            list(self.entries if entries is None else entries),
            self.min_timestamp if min_timestamp is None else min_timestamp,
            self.max_timestamp if max_timestamp is None else max_timestamp,
        )

    def equals(self, other: 'Tier') -> bool:
        """Compare two tiers; times are compared with is_close, labels exactly."""
        if type(self) is not type(other):
            return False
        if self.name != other.name:
            return False
        if not is_close(self.min_timestamp, other.min_timestamp):
            return False
        if not is_close(self.max_timestamp, other.max_timestamp):
            return False
        if len(self.entries) != len(other.entries):
            return False
        return all(self.entries_are_equal(a, b) for a, b in zip(self.entries, other.entries))

    def insert_entry(self, entry, warn: Optional[bool] = None,
                     collision_policy: Optional[str] = None):
        """Insert an entry into this tier in place.

        Args:
            entry: The (time, label) or (start, end, label) entry to add
            warn: Log a warning when the entry collides with existing ones.
                Defaults to the tier's warn_on_collision: on for point
                tiers, off for interval tiers.
            collision_policy: 'replace' drops the colliding entries, 'merge'
                joins them with the new one into a single entry. Any other
                value raises TextgridCollisionError on a collision.
        """
        if warn is None:
            warn = self.warn_on_collision
        entry = self._coerce_entry(entry)
        matches = self._find_matches(entry)

        if not matches:
            self.entries.append(entry)
        elif collision_policy == 'replace':
            for match in matches:
                self.delete_entry(match)
            self.entries.append(entry)
        elif collision_policy == 'merge':
            for match in matches:
                self.delete_entry(match)
            self.entries.append(self._merge_entries(entry, matches))
        else:
            raise TextgridCollisionError(self.name, entry, matches)

        if warn and matches:
            logger.warning(
                "Collision in tier '%s': %s overlapped %s, resolved with '%s'",
                self.name, list(entry), [list(match) for match in matches], collision_policy,
            )

        start, end = self._entry_span(entry)
        self.min_timestamp = min(self.min_timestamp, start)
        self.max_timestamp = max(self.max_timestamp, end)
        self.sort()

    def delete_entry(self, entry):
        """Remove the first entry equal to ``entry`` in place."""
        for i, existing in enumerate(self.entries):
            if self.entries_are_equal(existing, entry):
                del self.entries[i]
                return
        raise TierIndexError(-1, len(self.entries))

    def find(self, label: str, mode: Optional[str] = None) -> list[int]:
        """Return the indices of entries whose label matches.

        Args:
            label: The label, substring or regular expression to look for
            mode: None or 'exact' for exact matches, 'substr' for substring
                matches, 're' for a regular expression search

        Returns:
            Indices into ``entries`` in tier order
        """
        if mode not in FIND_MODES:
            raise IncorrectArgumentError(mode, FIND_MODES)

        labels = [entry[self.label_index] for entry in self.entries]
        if mode == 're':
            pattern = re.compile(label)
            return [i for i, text in enumerate(labels) if pattern.search(text)]
        if mode == 'substr':
            return [i for i, text in enumerate(labels) if label in text]
        return [i for i, text in enumerate(labels) if text == label]

    def edit_timestamps(self, offset: float, allow_overshoot: bool = False) -> 'Tier':
        """Return a copy with every entry shifted by ``offset`` seconds.

        Unless ``allow_overshoot`` is set, an entry pushed outside the
        tier's range raises OvershootModificationError. The range of the
        copy grows to fit the shifted entries but never shrinks.
        """
        new_entries = []
        for entry in self.entries:
            new_entry = self._shift_entry(entry, offset)
            start, end = self._entry_span(new_entry)
            if not allow_overshoot and (start < self.min_timestamp or end > self.max_timestamp):
                raise OvershootModificationError(
                    self.name, entry, new_entry, self.min_timestamp, self.max_timestamp
                )
            new_entries.append(new_entry)

        return self.new_copy(entries=new_entries)

    def append_tier(self, other: 'Tier') -> 'Tier':
        """Return this tier followed by ``other``, shifted to start at this tier's end."""
        if self.tier_type != other.tier_type:
            raise NonMatchingTiersError()

        shifted = other.edit_timestamps(self.max_timestamp, allow_overshoot=True)
        return self.new_copy(
            entries=self.entries + shifted.entries,
            min_timestamp=self.min_timestamp,
            max_timestamp=self.max_timestamp + other.max_timestamp,
        )

    def union(self, other: 'Tier') -> 'Tier':
        """Return a copy with every entry of ``other`` merged in."""
        union_tier = self.new_copy()
        for entry in other.entries:
            union_tier.insert_entry(entry, warn=False, collision_policy='merge')
        union_tier.sort()
        return union_tier

    def erase_region(self, start: float, stop: float, do_shrink: bool = False,
                     collision_policy: str = 'truncated') -> 'Tier':
        """Return a copy with the entries between ``start`` and ``stop`` removed.

        Args:
            start: Start of the region to erase
            stop: End of the region to erase
            do_shrink: If True, everything after the region moves earlier
                by (stop - start) and the tier gets shorter
            collision_policy: 'strict' drops entries that straddle the
                region, 'truncated' cuts them at the region's edge

        Returns:
            The erased copy
        """
        if collision_policy not in ERASE_POLICIES:
            raise IncorrectArgumentError(collision_policy, ERASE_POLICIES)

        if start > self.min_timestamp and stop < self.max_timestamp:
            left = self.crop(self.min_timestamp, start, collision_policy, False)
            if do_shrink:
                right = self.crop(stop, self.max_timestamp, collision_policy, True)
                erased = left.append_tier(right)
            else:
                right = self.crop(stop, self.max_timestamp, collision_policy, False)
                erased = left.union(right)
        elif start > self.min_timestamp:
            erased = self.crop(self.min_timestamp, start, collision_policy, False)
        elif stop < self.max_timestamp:
            erased = self.crop(stop, self.max_timestamp, collision_policy, do_shrink)
        else:
            erased = self.new_copy(entries=[])

        if not do_shrink:
            erased.min_timestamp = self.min_timestamp
            erased.max_timestamp = self.max_timestamp
        return erased


class PointTier(Tier):
    """A tier of (time, label) points."""

    tier_type = POINT_TIER
    label_index = 1

    def _coerce_entry(self, entry) -> Point:
        time, label = entry
        return Point(float(time), str(label))

    def _entry_span(self, entry) -> tuple[float, float]:
        return entry[0], entry[0]

    def _shift_entry(self, entry, offset: float) -> Point:
        return Point(entry[0] + offset, entry[1])

    def _find_matches(self, entry) -> list:
        for existing in self.entries:
            if is_close(existing.time, entry.time):
                return [existing]
        return []

    def _merge_entries(self, entry, matches: list) -> Point:
        match = matches[0]
        return Point(match.time, f"{match.label}-{entry.label}")

    def entries_are_equal(self, entry_a, entry_b) -> bool:
        return is_close(entry_a[0], entry_b[0]) and entry_a[1] == entry_b[1]

    def crop(self, crop_start: float, crop_end: float, mode: str = 'truncated',
             rebase_to_zero: bool = False) -> 'PointTier':
        """Return a copy with only the points in [crop_start, crop_end].

        ``mode`` is accepted for symmetry with IntervalTier.crop and has
        no effect on points.
        """
        new_entries = [entry for entry in self.entries if crop_start <= entry.time <= crop_end]

        min_timestamp, max_timestamp = crop_start, crop_end
        if rebase_to_zero:
            new_entries = [Point(entry.time - crop_start, entry.label) for entry in new_entries]
            min_timestamp, max_timestamp = 0.0, crop_end - crop_start

        return PointTier(self.name, new_entries, min_timestamp, max_timestamp)

    def insert_space(self, start: float, duration: float,
                     collision_policy: Optional[str] = None) -> 'PointTier':
        """Return a copy with every point after ``start`` pushed back by ``duration``."""
        new_entries = [
            entry if entry.time <= start else Point(entry.time + duration, entry.label)
            for entry in self.entries
        ]
        return self.new_copy(entries=new_entries, max_timestamp=self.max_timestamp + duration)

    def get_entries_in_interval(self, start: float, stop: float) -> list[Point]:
        """Return the points with start <= time <= stop."""
        return [entry for entry in self.entries if start <= entry.time <= stop]

    def get_values_at_points(self, data: Sequence[Sequence], find_closest: bool = False) -> list:
        """Keep the rows of ``data`` that fall on a point in this tier.

        Args:
            data: Rows of the form (time, value1, value2, ...)
            find_closest: Match a row to the nearest point instead of
                requiring an exact time

        Returns:
            The matching rows, in input order
        """
        tree = build_tree(self.entries)
        return [row for row in data if find_point_at_time(tree, row[0], find_closest) is not None]


class IntervalTier(Tier):
    """A tier of (start, end, label) intervals."""

    tier_type = INTERVAL_TIER
    label_index = 2
    warn_on_collision = False

    def _coerce_entry(self, entry) -> Interval:
        start, end, label = entry
        interval = Interval(float(start), float(end), str(label))
        if interval.end <= interval.start:
            raise TierCreationError(
                f"Interval {list(interval)} in tier '{self.name}' must end after it starts"
            )
        return interval

    def _entry_span(self, entry) -> tuple[float, float]:
        return entry[0], entry[1]

    def _shift_entry(self, entry, offset: float) -> Interval:
        return Interval(entry[0] + offset, entry[1] + offset, entry[2])

    def _find_matches(self, entry) -> list:
        return [existing for existing in self.entries if intervals_overlap(existing, entry)]

    def _merge_entries(self, entry, matches: list) -> Interval:
        merged = sorted(matches + [entry], key=entry_time)
        return Interval(
            min(item.start for item in merged),
            max(item.end for item in merged),
            '-'.join(item.label for item in merged),
        )

    def entries_are_equal(self, entry_a, entry_b) -> bool:
        return (is_close(entry_a[0], entry_b[0])
                and is_close(entry_a[1], entry_b[1])
                and entry_a[2] == entry_b[2])

    def crop(self, crop_start: float, crop_end: float, mode: str = 'truncated',
             rebase_to_zero: bool = False) -> 'IntervalTier':
        """Return a copy with only the intervals inside the crop region.

        Args:
            crop_start: Start of the crop region
            crop_end: End of the crop region
            mode: 'strict' keeps only intervals wholly inside the region,
                'lax' also keeps intervals that reach outside it and
                'truncated' cuts those intervals at the region's edges
            rebase_to_zero: Subtract crop_start from every kept time

        Returns:
            The cropped tier, with range [crop_start, crop_end] or
            [0, crop_end - crop_start] when rebased
        """
        if mode not in CROP_MODES:
            raise IncorrectArgumentError(mode, CROP_MODES)

        new_entries = []
        for entry in self.entries:
            start, end, label = entry
            if end <= crop_start or start >= crop_end:
                continue

            if start >= crop_start and end <= crop_end:
                new_entries.append(entry)
            elif mode == 'lax':
                new_entries.append(entry)
            elif mode == 'truncated':
                new_entries.append(Interval(max(start, crop_start), min(end, crop_end), label))

        min_timestamp, max_timestamp = crop_start, crop_end
        if rebase_to_zero:
            new_entries = [
                Interval(entry.start - crop_start, entry.end - crop_start, entry.label)
                for entry in new_entries
            ]
            min_timestamp, max_timestamp = 0.0, crop_end - crop_start

        return IntervalTier(self.name, new_entries, min_timestamp, max_timestamp)

    def insert_space(self, start: float, duration: float,
                     collision_policy: Optional[str] = None) -> 'IntervalTier':
        """Return a copy with a blank region of ``duration`` seconds at ``start``.

        ``collision_policy`` decides what happens to an interval that
        straddles ``start``: 'stretch' lengthens it by ``duration``,
        'split' cuts it in two around the new blank region and
        'no change' leaves it as it is.
        """
        if collision_policy not in INSERT_SPACE_POLICIES:
            raise IncorrectArgumentError(collision_policy, INSERT_SPACE_POLICIES)

        new_entries = []
        for entry_start, entry_end, label in self.entries:
            if entry_end <= start:
                new_entries.append(Interval(entry_start, entry_end, label))
            elif entry_start >= start:
                new_entries.append(Interval(entry_start + duration, entry_end + duration, label))
            elif collision_policy == 'stretch':
                new_entries.append(Interval(entry_start, entry_end + duration, label))
            elif collision_policy == 'split':
                new_entries.append(Interval(entry_start, start, label))
                new_entries.append(Interval(start + duration, entry_end + duration, label))
            else:
                new_entries.append(Interval(entry_start, entry_end, label))

        return self.new_copy(entries=new_entries, max_timestamp=self.max_timestamp + duration)

    def get_entries_in_interval(self, start: float, stop: float) -> list[Interval]:
        """Return the intervals overlapping [start, stop], untruncated."""
        return self.crop(start, stop, 'lax', False).entries

    def get_values_in_intervals(self, data: Sequence[Sequence]) -> list:
        """Keep the rows of ``data`` whose time falls inside an interval.

        Rows have the form (time, value1, value2, ...); interval edges
        count as inside.
        """
        tree = build_tree(self.entries)
        return [row for row in data if find_interval_at_time(tree, row[0]) is not None]

    def get_non_entries(self) -> list[Interval]:
        """Return the unlabelled stretches of this tier as blank intervals."""
        if not self.entries:
            return [Interval(self.min_timestamp, self.max_timestamp, '')]

        gaps = []
        first, last = self.entries[0], self.entries[-1]
        if first.start > self.min_timestamp:
            gaps.append(Interval(self.min_timestamp, first.start, ''))

        for current, following in zip(self.entries, self.entries[1:]):
            if current.end != following.start:
                gaps.append(Interval(current.end, following.start, ''))

        if last.end < self.max_timestamp:
            gaps.append(Interval(last.end, self.max_timestamp, ''))

        return gaps

    def difference(self, other: 'IntervalTier') -> 'IntervalTier':
        """Return a copy with every span covered by ``other`` erased."""
        difference_tier = self.new_copy()
        for entry in other.entries:
            difference_tier = difference_tier.erase_region(entry[0], entry[1], False, 'truncated')
        return difference_tier

    def intersection(self, other: 'IntervalTier') -> 'IntervalTier':
        """Return the spans covered by both tiers, labelled 'mine-theirs'."""
        new_entries = []
        for start, end, label in self.entries:
            sub_tier = other.crop(start, end, 'truncated', False)
            new_entries.extend(
                Interval(sub.start, sub.end, f"{label}-{sub.label}") for sub in sub_tier.entries
            )
        return self.new_copy(name=f"{self.name}-{other.name}", entries=new_entries)
