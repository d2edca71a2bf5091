"""
Praat TextGrid text codec and CSV export.

Both the long (``item [1]:`` / ``xmin = 0``) and the short (one value per
line) TextGrid forms are read and written. Serializing a file that was
already normalized reproduces it byte for byte.

Usage:
    from tiergrid.annotation.textgrid import read_textgrid, write_textgrid

    tg = read_textgrid('speech.TextGrid')
    write_textgrid(tg, 'speech_long.TextGrid', use_short_form=False)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .errors import IncorrectArgumentError, NormalizationRangeError, TextgridParseError
from .grid import Textgrid
from .tier import INTERVAL_TIER, Interval, IntervalTier, PointTier, Tier
from .utils import format_time

logger = logging.getLogger(__name__)

# Intervals shorter than this are folded into their neighbour when saving
MIN_INTERVAL_LENGTH = 0.00000001

TAB = ' ' * 4


def _unescape_praat_string(s: str) -> str:
    """
    Unescape a Praat text string.

    Strings are quoted with double quotes and a literal quote within the
    string is written as two quotes (""). Surrounding whitespace is
    trimmed both outside and inside the quotes.
    """
    s = s.strip()
    if len(s) >= 2 and s.startswith('"') and s.endswith('"'):
        s = s[1:-1].strip()
    return s.replace('""', '"')


def _escape_praat_string(s: str) -> str:
    """Escape literal quotes as "" and wrap in outer quotes."""
    return '"' + s.replace('"', '""') + '"'


def decode_buffer(data: bytes | str) -> str:
    """Turn file contents into text.

    Text is returned unchanged. Bytes are tried as UTF-16 first (Praat's
    default for non-ASCII files) and as UTF-8 when that fails or does not
    produce a TextGrid header.
    """
    if isinstance(data, str):
        return data

    try:
        text = data.decode('utf-16')
    except UnicodeDecodeError:
        text = ''
    if 'ooTextFile' not in text:
        text = data.decode('utf-8')
    return text


def parse_textgrid(data: bytes | str, read_raw: bool = False) -> Textgrid:
    """Build a Textgrid from the contents of a TextGrid file.

    Args:
        data: File contents, as text or undecoded bytes
        read_raw: Keep entries with an empty label. These are normally the
            blanks written by a previous save and are dropped.

    Returns:
        The parsed Textgrid

    Raises:
        TextgridParseError: If the text ends before all tiers are read
    """
    text = decode_buffer(data).replace('\r\n', '\n')

    # Long format has an "item []:" line; labels never start a line unquoted
    if 'ooTextFile short' not in text and _LONG_FORM_PATTERN.search(text):
        tg = _read_textgrid_long(text, read_raw)
    else:
        tg = _read_textgrid_short(text, read_raw)
    return tg


_LONG_FORM_PATTERN = re.compile(r'^\s*item\s*\[\d*\]:', re.MULTILINE)

_TIER_PATTERN = re.compile(
    r'^\s*item\s*\[\d+\]:\s*\n\s*class\s*=\s*"(IntervalTier|TextTier)"',
    re.MULTILINE
)

_ENTRY_LIST_PATTERN = re.compile(r'^\s*(?:intervals|points)\s*:\s*size', re.MULTILINE)

# The label is everything from the first to the last quote on its line
_INTERVAL_PATTERN = re.compile(
    r'^\s*intervals\s*\[\d+\]:\s*\n'
    r'\s*xmin\s*=\s*(\S+)\s*\n'
    r'\s*xmax\s*=\s*(\S+)\s*\n'
    r'[ \t]*text\s*=\s*(".*")[ \t]*$',
    re.MULTILINE
)

_POINT_PATTERN = re.compile(
    r'^\s*points\s*\[\d+\]:\s*\n'
    r'\s*(?:number|time)\s*=\s*(\S+)\s*\n'
    r'[ \t]*mark\s*=\s*(".*")[ \t]*$',
    re.MULTILINE
)


def _field(block: str, key: str) -> str:
    """Value of the first ``key = value`` line in ``block``."""
    match = re.search(rf'^[ \t]*{key}[ \t]*=[ \t]*(.*?)[ \t]*$', block, re.MULTILINE)
    if match is None:
        raise TextgridParseError(f"Missing '{key}' field")
    return match.group(1)


def _make_tier(is_interval: bool, name: str, entries: list, xmin: float, xmax: float,
               read_raw: bool) -> Tier:
    if not read_raw:
        entries = [entry for entry in entries if entry[-1] != '']
    tier_class = IntervalTier if is_interval else PointTier
    return tier_class(name, entries, xmin, xmax)


def _read_textgrid_long(content: str, read_raw: bool) -> Textgrid:
    """Parse long-format TextGrid."""
    tier_matches = list(_TIER_PATTERN.finditer(content))
    header = content[:tier_matches[0].start()] if tier_matches else content

    tg = Textgrid()
    tg.min_timestamp = float(_field(header, 'xmin'))
    tg.max_timestamp = float(_field(header, 'xmax'))

    tier_ends = [match.start() for match in tier_matches[1:]] + [len(content)]
    for match, block_end in zip(tier_matches, tier_ends):
        block = content[match.start():block_end]
        is_interval = match.group(1) == INTERVAL_TIER

        # Tier fields come before the entry list, entries after it
        list_match = _ENTRY_LIST_PATTERN.search(block)
        split_at = list_match.start() if list_match else len(block)
        tier_header, tier_data = block[:split_at], block[split_at:]

        name = _unescape_praat_string(_field(tier_header, 'name'))
        xmin = float(_field(tier_header, 'xmin'))
        xmax = float(_field(tier_header, 'xmax'))

        if is_interval:
            entries = [
                (float(start), float(end), _unescape_praat_string(label))
                for start, end, label in _INTERVAL_PATTERN.findall(tier_data)
            ]
        else:
            entries = [
                (float(time), _unescape_praat_string(label))
                for time, label in _POINT_PATTERN.findall(tier_data)
            ]

        tg.add_tier(_make_tier(is_interval, name, entries, xmin, xmax, read_raw))

    return tg


def _read_textgrid_short(content: str, read_raw: bool) -> Textgrid:
    """Parse short-format TextGrid.

    Values are read one line at a time, driven by the tier count and
    each tier's entry count, so labels are never mistaken for structure.
    """
    # Quoted labels are never blank lines, so blank lines carry nothing
    lines = [line.strip() for line in content.split('\n') if line.strip()]
    values = iter(lines[2:])

    try:
        tg = Textgrid()
        tg.min_timestamp = float(next(values))
        tg.max_timestamp = float(next(values))
        num_tiers = int(next(values)) if next(values) == '<exists>' else 0

        for _ in range(num_tiers):
            is_interval = _unescape_praat_string(next(values)) == INTERVAL_TIER
            name = _unescape_praat_string(next(values))
            xmin = float(next(values))
            xmax = float(next(values))
            num_entries = int(next(values))

            entries = []
            for _ in range(num_entries):
                if is_interval:
                    start = float(next(values))
                    end = float(next(values))
                    entries.append((start, end, _unescape_praat_string(next(values))))
                else:
                    time = float(next(values))
                    entries.append((time, _unescape_praat_string(next(values))))

            tg.add_tier(_make_tier(is_interval, name, entries, xmin, xmax, read_raw))
    except StopIteration:
        raise TextgridParseError('Unexpected end of short-form TextGrid') from None

    return tg


def _fill_in_blanks(tier: IntervalTier, min_timestamp: float, max_timestamp: float,
                    blank_label: str = '') -> IntervalTier:
    """Cover every unlabelled stretch of [min_timestamp, max_timestamp] with a blank interval."""
    if not tier.entries:
        return tier.new_copy(entries=[Interval(min_timestamp, max_timestamp, blank_label)])

    entries = [tier.entries[0]]
    for entry in tier.entries[1:]:
        prev_end = entries[-1].end
        if prev_end < entry.start:
            entries.append(Interval(prev_end, entry.start, blank_label))
        entries.append(entry)

    if entries[0].start < min_timestamp:
        raise NormalizationRangeError(tier.name, 'Tier data is before the tier start time.')
    if entries[0].start > min_timestamp:
        entries.insert(0, Interval(min_timestamp, entries[0].start, blank_label))

    if entries[-1].end > max_timestamp:
        raise NormalizationRangeError(tier.name, 'Tier data is after the tier end time.')
    if entries[-1].end < max_timestamp:
        entries.append(Interval(entries[-1].end, max_timestamp, blank_label))

    return tier.new_copy(entries=entries)


def _remove_ultrashort_intervals(tier: IntervalTier, min_length: float,
                                 min_timestamp: float) -> IntervalTier:
    """Fold intervals shorter than ``min_length`` into the interval before them.

    Repeated crops and shifts leave behind slivers like 1e-15 seconds
    long; Praat refuses to open files containing them.
    """
    entries = []
    for start, end, label in tier.entries:
        if end - start < min_length:
            if entries:
                prev = entries[-1]
                entries[-1] = Interval(prev.start, end, prev.label)
        elif not entries and start != min_timestamp:
            entries.append(Interval(min_timestamp, end, label))
        else:
            entries.append(Interval(start, end, label))

    # Snap boundaries that almost touch
    for j in range(len(entries) - 1):
        gap = abs(entries[j].end - entries[j + 1].start)
        if 0 < gap < MIN_INTERVAL_LENGTH:
            entries[j] = Interval(entries[j].start, entries[j + 1].start, entries[j].label)

    return tier.new_copy(entries=entries)


def prep_tg_for_saving(tg: Textgrid, min_interval_length: Optional[float] = MIN_INTERVAL_LENGTH,
                       min_timestamp: Optional[float] = None,
                       max_timestamp: Optional[float] = None) -> Textgrid:
    """Return a copy of ``tg`` ready to be written out.

    Gaps in interval tiers are filled with blank intervals and, unless
    ``min_interval_length`` is None, intervals shorter than it are
    removed. Point tiers are copied unchanged. ``tg`` is not modified.

    Raises:
        NormalizationRangeError: If tier data lies outside
            [min_timestamp, max_timestamp]
    """
    if min_timestamp is None:
        min_timestamp = tg.min_timestamp
    if max_timestamp is None:
        max_timestamp = tg.max_timestamp

    prepped = Textgrid()
    for tier in tg.tiers:
        tier = tier.new_copy()
        if isinstance(tier, IntervalTier):
            tier = _fill_in_blanks(tier, min_timestamp, max_timestamp)
            if min_interval_length is not None:
                tier = _remove_ultrashort_intervals(tier, min_interval_length, min_timestamp)
        tier.sort()
        prepped.add_tier(tier)

    if not prepped.tier_names:
        prepped.min_timestamp = min_timestamp
        prepped.max_timestamp = max_timestamp
    return prepped


def serialize_textgrid(tg: Textgrid, min_interval_length: Optional[float] = MIN_INTERVAL_LENGTH,
                       min_timestamp: Optional[float] = None,
                       max_timestamp: Optional[float] = None,
                       use_short_form: bool = True) -> str:
    """Render a Textgrid as TextGrid file text.

    Args:
        tg: The textgrid to render
        min_interval_length: Remove intervals shorter than this; None
            keeps them all
        min_timestamp: Start of the saved textgrid; defaults to tg's
        max_timestamp: End of the saved textgrid; defaults to tg's
        use_short_form: Write the compact form instead of the long,
            human readable one

    Returns:
        The file text
    """
    if min_timestamp is None:
        min_timestamp = tg.min_timestamp
    if max_timestamp is None:
        max_timestamp = tg.max_timestamp

    prepped = prep_tg_for_saving(tg, min_interval_length, min_timestamp, max_timestamp)

    if use_short_form:
        return _write_textgrid_short(prepped, min_timestamp, max_timestamp)
    return _write_textgrid_long(prepped, min_timestamp, max_timestamp)


def _write_textgrid_long(tg: Textgrid, min_timestamp: float, max_timestamp: float) -> str:
    """Render long-format TextGrid."""
    xmin = format_time(min_timestamp)
    xmax = format_time(max_timestamp)

    out = [
        'File type = "ooTextFile"\n',
        'Object class = "TextGrid"\n',
        '\n',
        f'xmin = {xmin} \n',
        f'xmax = {xmax} \n',
        'tiers? <exists> \n',
        f'size = {tg.num_tiers} \n',
        'item []: \n',
    ]

    for i, tier in enumerate(tg.tiers):
        out.append(f'{TAB}item [{i + 1}]:\n')
        out.append(f'{TAB * 2}class = "{tier.tier_type}" \n')
        out.append(f'{TAB * 2}name = {_escape_praat_string(tier.name)} \n')
        out.append(f'{TAB * 2}xmin = {xmin} \n')
        out.append(f'{TAB * 2}xmax = {xmax} \n')

        if tier.tier_type == INTERVAL_TIER:
            out.append(f'{TAB * 2}intervals: size = {len(tier.entries)} \n')
            for j, (start, end, label) in enumerate(tier.entries):
                out.append(f'{TAB * 2}intervals [{j + 1}]:\n')
                out.append(f'{TAB * 3}xmin = {format_time(start)} \n')
                out.append(f'{TAB * 3}xmax = {format_time(end)} \n')
                out.append(f'{TAB * 3}text = {_escape_praat_string(label)} \n')
        else:
            out.append(f'{TAB * 2}points: size = {len(tier.entries)} \n')
            for j, (time, label) in enumerate(tier.entries):
                out.append(f'{TAB * 2}points [{j + 1}]:\n')
                out.append(f'{TAB * 3}number = {format_time(time)} \n')
                out.append(f'{TAB * 3}mark = {_escape_praat_string(label)} \n')

    return ''.join(out)


def _write_textgrid_short(tg: Textgrid, min_timestamp: float, max_timestamp: float) -> str:
    """Render short-format TextGrid."""
    xmin = format_time(min_timestamp)
    xmax = format_time(max_timestamp)

    out = [
        'File type = "ooTextFile"\n',
        'Object class = "TextGrid"\n',
        '\n',
        f'{xmin}\n',
        f'{xmax}\n',
        '<exists>\n',
        f'{tg.num_tiers}\n',
    ]

    for tier in tg.tiers:
        out.append(f'"{tier.tier_type}"\n')
        out.append(f'{_escape_praat_string(tier.name)}\n')
        out.append(f'{xmin}\n')
        out.append(f'{xmax}\n')
        out.append(f'{len(tier.entries)}\n')

        for entry in tier.entries:
            for value in entry[:-1]:
                out.append(f'{format_time(value)}\n')
            out.append(f'{_escape_praat_string(entry[-1])}\n')

    return ''.join(out)


def serialize_textgrid_to_csv(tg: Textgrid, pivot_tier_name: str,
                              tier_names: Optional[list[str]] = None,
                              include_header: bool = True) -> str:
    """Render a Textgrid as a comma separated table.

    One row is written per interval of the pivot tier. Each column holds
    the first label found in that tier within the pivot interval, and
    the row ends with the pivot interval's start and end time. Labels are
    written as they are, without quoting.

    Args:
        tg: The textgrid to export
        pivot_tier_name: Interval tier that defines the rows
        tier_names: Tiers to include as columns; all tiers when None
        include_header: Start with a row of column names

    Returns:
        The CSV text, rows separated by newlines
    """
    if tier_names is None:
        tier_names = list(tg.tier_names)

    pivot_tier = tg.tier_dict[pivot_tier_name]
    if pivot_tier.tier_type != INTERVAL_TIER:
        raise IncorrectArgumentError(pivot_tier.tier_type, [INTERVAL_TIER])

    table = []
    if include_header:
        table.append(list(tier_names) + ['Start Time', 'End Time'])

    for start, end, _ in pivot_tier.entries:
        sub_tg = tg.crop(start, end, 'truncated', False)

        row = []
        for name in tier_names:
            label = ''
            sub_tier = sub_tg.tier_dict.get(name)
            if sub_tier is not None and sub_tier.entries:
                label = sub_tier.entries[0][sub_tier.label_index]
            row.append(label)
        row.append(format_time(start))
        row.append(format_time(end))
        table.append(row)

    return '\n'.join(','.join(row) for row in table)


def read_textgrid(file_path: str | Path, read_raw: bool = False) -> Textgrid:
    """Read a Praat TextGrid file.

    Supports both short and long TextGrid formats, in UTF-8 or UTF-16.
    """
    file_path = Path(file_path)

    tg = parse_textgrid(file_path.read_bytes(), read_raw)
    logger.debug("Read %d tiers from %s", tg.num_tiers, file_path)
    return tg


def write_textgrid(tg: Textgrid, file_path: str | Path, use_short_form: bool = True,
                   min_interval_length: Optional[float] = MIN_INTERVAL_LENGTH,
                   min_timestamp: Optional[float] = None,
                   max_timestamp: Optional[float] = None,
                   encoding: str = 'utf-8'):
    """Write a Textgrid to a Praat TextGrid file.

    Args:
        tg: The textgrid to write
        file_path: Output file path
        use_short_form: If True, write short format; otherwise long format
        min_interval_length: See serialize_textgrid
        min_timestamp: See serialize_textgrid
        max_timestamp: See serialize_textgrid
        encoding: Text encoding of the output file
    """
    file_path = Path(file_path)
    text = serialize_textgrid(tg, min_interval_length, min_timestamp, max_timestamp, use_short_form)

    with open(file_path, 'w', encoding=encoding, newline='') as f:
        f.write(text)
    logger.debug("Wrote %d tiers to %s", tg.num_tiers, file_path)


def write_csv(tg: Textgrid, file_path: str | Path, pivot_tier_name: str,
              tier_names: Optional[list[str]] = None, include_header: bool = True,
              encoding: str = 'utf-8'):
    """Write a Textgrid to a CSV file; see serialize_textgrid_to_csv."""
    file_path = Path(file_path)
    text = serialize_textgrid_to_csv(tg, pivot_tier_name, tier_names, include_header)

    with open(file_path, 'w', encoding=encoding, newline='') as f:
        f.write(text)
