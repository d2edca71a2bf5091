"""Annotation module for tiers, textgrids and TextGrid/CSV I/O."""

from .errors import (
    TextgridError,
    TierCreationError,
    TierExistsError,
    TextgridCollisionError,
    OvershootModificationError,
    TierIndexError,
    IncorrectArgumentError,
    NonMatchingTiersError,
    NormalizationRangeError,
    TextgridParseError,
)
from .tier import (
    INTERVAL_TIER,
    POINT_TIER,
    Interval,
    Point,
    Tier,
    IntervalTier,
    PointTier,
)
from .grid import Textgrid
from .textgrid import (
    MIN_INTERVAL_LENGTH,
    decode_buffer,
    parse_textgrid,
    prep_tg_for_saving,
    serialize_textgrid,
    serialize_textgrid_to_csv,
    read_textgrid,
    write_textgrid,
    write_csv,
)

__all__ = [
    'TextgridError',
    'TierCreationError',
    'TierExistsError',
    'TextgridCollisionError',
    'OvershootModificationError',
    'TierIndexError',
    'IncorrectArgumentError',
    'NonMatchingTiersError',
    'NormalizationRangeError',
    'TextgridParseError',
    'INTERVAL_TIER',
    'POINT_TIER',
    'Interval',
    'Point',
    'Tier',
    'IntervalTier',
    'PointTier',
    'Textgrid',
    'MIN_INTERVAL_LENGTH',
    'decode_buffer',
    'parse_textgrid',
    'prep_tg_for_saving',
    'serialize_textgrid',
    'serialize_textgrid_to_csv',
    'read_textgrid',
    'write_textgrid',
    'write_csv',
]
