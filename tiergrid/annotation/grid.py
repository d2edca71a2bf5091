"""
Textgrid: an ordered collection of named tiers sharing one time range.

Usage:
    from tiergrid.annotation.grid import Textgrid
    from tiergrid.annotation.tier import IntervalTier, PointTier

    tg = Textgrid()
    tg.add_tier(IntervalTier('words', [(0.73, 1.02, 'Ichiro')]))
    tg.add_tier(PointTier('pitch', [(0.9, '120')]))
    shorter = tg.erase_region(0.8, 0.95, do_shrink=True)
"""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import NonMatchingTiersError, TierExistsError
from .tier import IntervalTier, PointTier, Tier
from .utils import is_close


class Textgrid:
    """A collection of annotation tiers.

    Whenever a tier is added, the textgrid's range becomes the union of
    all tier ranges and that range is written back into every tier.
    """

    def __init__(self):
        self.tier_names: list[str] = []
        self.tier_dict: dict[str, Tier] = {}
        self.min_timestamp: Optional[float] = None
        self.max_timestamp: Optional[float] = None

    def __repr__(self) -> str:
        return f"Textgrid({self.tier_names!r}, {self.min_timestamp}-{self.max_timestamp})"

    def __len__(self) -> int:
        return len(self.tier_names)

    def __contains__(self, name: str) -> bool:
        return name in self.tier_dict

    def __eq__(self, other) -> bool:
        if not isinstance(other, Textgrid):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    @property
    def num_tiers(self) -> int:
        return len(self.tier_names)

    @property
    def tiers(self) -> list[Tier]:
        """Tiers in textgrid order."""
        return [self.tier_dict[name] for name in self.tier_names]

    def get_tier(self, name: str) -> Tier:
        return self.tier_dict[name]

    def add_tier(self, tier: Tier, index: Optional[int] = None):
        """Add a tier at the end, or at ``index`` if given.

        The tier is stored as is (not copied), and its range is
        overwritten by homogenization.
        """
        if tier.name in self.tier_dict:
            raise TierExistsError(tier.name)

        if index is None:
            self.tier_names.append(tier.name)
        else:
            self.tier_names.insert(index, tier.name)
        self.tier_dict[tier.name] = tier

        self._homogenize_timestamps()

    def _homogenize_timestamps(self):
        tiers = self.tiers
        self.min_timestamp = min(tier.min_timestamp for tier in tiers)
        self.max_timestamp = max(tier.max_timestamp for tier in tiers)
        for tier in tiers:
            tier.min_timestamp = self.min_timestamp
            tier.max_timestamp = self.max_timestamp

    def remove_tier(self, name: str) -> Tier:
        """Remove a tier and return it."""
        self.tier_names.remove(name)
        return self.tier_dict.pop(name)

    def rename_tier(self, old_name: str, new_name: str):
        """Rename a tier, keeping its position."""
        if new_name in self.tier_dict:
            raise TierExistsError(new_name)

        index = self.tier_names.index(old_name)
        new_tier = self.tier_dict[old_name].new_copy(name=new_name)
        self.remove_tier(old_name)
        self.add_tier(new_tier, index)

    def replace_tier(self, name: str, new_tier: Tier):
        """Swap the tier called ``name`` for ``new_tier``, keeping its position."""
        index = self.tier_names.index(name)
        self.remove_tier(name)
        self.add_tier(new_tier, index)

    def new_copy(self) -> 'Textgrid':
        """Return a deep copy of this textgrid."""
        tg = Textgrid()
        for tier in self.tiers:
            tg.add_tier(tier.new_copy())
        tg.min_timestamp = self.min_timestamp
        tg.max_timestamp = self.max_timestamp
        return tg

    def equals(self, other: 'Textgrid') -> bool:
        """Compare ranges, tier order and every tier pair."""
        if self.tier_names != other.tier_names:
            return False
        if self.min_timestamp is None or other.min_timestamp is None:
            return self.min_timestamp == other.min_timestamp and self.max_timestamp == other.max_timestamp
        if not is_close(self.min_timestamp, other.min_timestamp):
            return False
        if not is_close(self.max_timestamp, other.max_timestamp):
            return False
        return all(self.tier_dict[name].equals(other.tier_dict[name]) for name in self.tier_names)

    @staticmethod
    def _from_tiers(tiers: Iterable[Tier], min_timestamp, max_timestamp) -> 'Textgrid':
        tg = Textgrid()
        # Only holds without tiers; add_tier homogenizes the range over the tiers
        tg.min_timestamp = min_timestamp
        tg.max_timestamp = max_timestamp
        for tier in tiers:
            tg.add_tier(tier)
        return tg

    def crop(self, crop_start: float, crop_end: float, mode: str = 'truncated',
             rebase_to_zero: bool = False) -> 'Textgrid':
        """Return a textgrid with every tier cropped to the given region.

        See IntervalTier.crop for the meaning of ``mode``.
        """
        if rebase_to_zero:
            min_timestamp, max_timestamp = 0.0, crop_end - crop_start
        else:
            min_timestamp, max_timestamp = crop_start, crop_end

        return self._from_tiers(
            (tier.crop(crop_start, crop_end, mode, rebase_to_zero) for tier in self.tiers),
            min_timestamp, max_timestamp,
        )

    def erase_region(self, start: float, stop: float, do_shrink: bool = False) -> 'Textgrid':
        """Return a textgrid with the region blanked in every tier.

        Entries straddling the region are truncated. With ``do_shrink``
        the region is cut out and the textgrid gets shorter.
        """
        max_timestamp = self.max_timestamp
        if do_shrink:
            max_timestamp -= stop - start

        return self._from_tiers(
            (tier.erase_region(start, stop, do_shrink, 'truncated') for tier in self.tiers),
            self.min_timestamp, max_timestamp,
        )

    def edit_timestamps(self, offset: float, allow_overshoot: bool = False) -> 'Textgrid':
        """Return a textgrid with every entry shifted by ``offset`` seconds."""
        return self._from_tiers(
            (tier.edit_timestamps(offset, allow_overshoot) for tier in self.tiers),
            self.min_timestamp, self.max_timestamp,
        )

    def insert_space(self, start: float, duration: float,
                     collision_policy: Optional[str] = None) -> 'Textgrid':
        """Return a textgrid with ``duration`` seconds of blank space at ``start``.

        See IntervalTier.insert_space for ``collision_policy``.
        """
        return self._from_tiers(
            (tier.insert_space(start, duration, collision_policy) for tier in self.tiers),
            self.min_timestamp, self.max_timestamp + duration,
        )

    def append_textgrid(self, other: 'Textgrid', only_matching_names: bool = True) -> 'Textgrid':
        """Return this textgrid followed by ``other``.

        Args:
            other: The textgrid to add on; its entries are shifted by
                this textgrid's max timestamp
            only_matching_names: Keep only tiers whose names appear in
                both textgrids

        Returns:
            A textgrid spanning this.min to this.max + other.max
        """
        combined_names = list(self.tier_names)
        combined_names.extend(name for name in other.tier_names if name not in combined_names)

        if only_matching_names:
            final_names = [name for name in combined_names
                           if name in self.tier_dict and name in other.tier_dict]
        else:
            final_names = combined_names

        min_timestamp = self.min_timestamp
        max_timestamp = self.max_timestamp + other.max_timestamp

        tg = Textgrid()
        for name in final_names:
            if name in self.tier_dict:
                tg.add_tier(self.tier_dict[name].new_copy(
                    min_timestamp=min_timestamp, max_timestamp=max_timestamp))

        for name in final_names:
            if name not in other.tier_dict:
                continue

            shifted = other.tier_dict[name].edit_timestamps(self.max_timestamp, allow_overshoot=True)
            tier = type(shifted)(name, shifted.entries, min_timestamp, max_timestamp)

            if name not in tg.tier_dict:
                tg.add_tier(tier)
                continue

            existing = tg.tier_dict[name]
            if existing.tier_type != tier.tier_type:
                raise NonMatchingTiersError()
            tg.replace_tier(name, existing.new_copy(entries=existing.entries + tier.entries))

        return tg

    def merge_tiers(self, tier_names: Optional[list[str]] = None,
                    preserve_other_tiers: bool = True,
                    interval_tier_name: str = 'merged intervals',
                    point_tier_name: str = 'merged points') -> 'Textgrid':
        """Combine tiers into one interval tier and one point tier.

        Args:
            tier_names: Tiers to merge; all tiers when None
            preserve_other_tiers: Keep the tiers that were not merged
            interval_tier_name: Name of the merged interval tier
            point_tier_name: Name of the merged point tier

        Returns:
            A textgrid holding the merged interval tier, the merged point
            tier and then any preserved tiers, in that order
        """
        if tier_names is None:
            tier_names = list(self.tier_names)

        interval_tiers = [self.tier_dict[name] for name in tier_names
                          if isinstance(self.tier_dict[name], IntervalTier)]
        point_tiers = [self.tier_dict[name] for name in tier_names
                       if isinstance(self.tier_dict[name], PointTier)]

        merged = []
        for tiers, merged_name in ((interval_tiers, interval_tier_name),
                                   (point_tiers, point_tier_name)):
            if not tiers:
                continue
            merged_tier = tiers[0].new_copy(name=merged_name)
            for tier in tiers[1:]:
                merged_tier = merged_tier.union(tier)
            merged.append(merged_tier)

        if preserve_other_tiers:
            merged.extend(self.tier_dict[name].new_copy()
                          for name in self.tier_names if name not in tier_names)

        return self._from_tiers(merged, self.min_timestamp, self.max_timestamp)
