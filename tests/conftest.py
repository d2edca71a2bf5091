"""Shared tiers and textgrids for the test suite."""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tiergrid.annotation import IntervalTier, PointTier, Textgrid

FILES_DIR = Path(__file__).parent / 'files'


def make_interval_tier_1():
    return IntervalTier('speaker 1', [
        (0.73, 1.02, 'Ichiro'),
        (1.02, 1.231, 'hit'),
        (1.33, 1.54, 'a'),
        (1.54, 1.91, 'homerun'),
    ])


def make_interval_tier_2():
    return IntervalTier('speaker 2', [
        (3.56, 3.98, 'and'),
        (3.98, 4.21, 'Fred'),
        (4.21, 4.44, 'caught'),
        (4.44, 4.53, 'it'),
    ])


def make_point_tier_1():
    return PointTier('pitch vals 1', [
        (0.9, '120'),
        (1.11, '100'),
        (1.41, '110'),
        (1.79, '95'),
    ])


def make_point_tier_2():
    return PointTier('pitch vals 2', [
        (3.78, '140'),
        (4.11, '131'),
        (4.32, '135'),
        (4.49, '120'),
    ])


def make_noise_tier():
    return PointTier('noises', [
        (2.29, 'Door slam'),
        (2.99, 'Cough'),
    ])


def make_prefab_textgrid():
    tg = Textgrid()
    for tier in (make_interval_tier_1(), make_interval_tier_2(), make_point_tier_1(),
                 make_point_tier_2(), make_noise_tier()):
        tg.add_tier(tier)
    return tg


@pytest.fixture
def interval_tier():
    return make_interval_tier_1()


@pytest.fixture
def point_tier():
    return make_point_tier_1()


@pytest.fixture
def prefab_textgrid():
    return make_prefab_textgrid()


@pytest.fixture
def short_text():
    return (FILES_DIR / 'baseball_short.TextGrid').read_text(encoding='utf-8')


@pytest.fixture
def long_text():
    return (FILES_DIR / 'baseball_long.TextGrid').read_text(encoding='utf-8')
