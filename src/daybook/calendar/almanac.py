"""Traditional almanac metadata for a calendar day.

Everything here is a pure function of the date: the sexagenary day label
(heavenly stem + earthly branch), the zodiac animal of the year, and
deterministic lists of activities that are favorable or unfavorable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from daybook.journal.models import parse_date_key

HEAVENLY_STEMS = ("甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸")
EARTHLY_BRANCHES = ("子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥")
ZODIAC_ANIMALS = ("鼠", "牛", "虎", "兔", "龙", "蛇", "马", "羊", "猴", "鸡", "狗", "猪")

# 2000-01-07 is a 甲子 day: stem 0, branch 0.
REFERENCE_DATE = date(2000, 1, 7)

FAVORABLE_CANDIDATES = (
    "婚嫁", "出行", "搬家", "开业", "动土", "祭祀", "祈福", "求嗣",
    "纳采", "开光", "安床", "修造", "入宅", "安葬", "破土", "启钻",
    "移柩", "订盟", "纳财", "开市", "立券", "交易", "挂匾", "栽种",
    "斋醮", "出火", "拆卸", "起基", "竖柱", "上梁", "放水", "解除",
    "沐浴", "冠笄", "裁衣", "会友", "进人口", "嫁娶", "经络", "酝酿",
)  # fmt: skip

UNFAVORABLE_CANDIDATES = (
    "婚嫁", "出行", "搬家", "开业", "动土", "安葬", "破土", "启钻",
    "入宅", "修造", "栽种", "安床", "开仓", "纳畜", "置产", "造桥",
    "伐木", "作灶", "行丧", "词讼", "探病", "求医", "造庙", "造船",
    "掘井", "开池", "上梁", "竖柱", "盖屋", "祈福", "祭祀", "开市",
    "立券", "交易", "纳财", "出火", "移徙", "分居", "合帐", "冠笄",
)  # fmt: skip

FAVORABLE_SEED = 42
UNFAVORABLE_SEED = 137
TOP_UP_OFFSET = 999
MIN_ITEMS = 3


@dataclass(frozen=True)
class AlmanacInfo:
    day_stem: str
    day_branch: str
    combined_day_label: str
    zodiac_year: str
    favorable: tuple[str, ...]
    unfavorable: tuple[str, ...]


def _cycle_index(offset: int, length: int) -> int:
    return ((offset % length) + length) % length


def day_stem_branch(day: date) -> tuple[str, str]:
    offset = (day - REFERENCE_DATE).days
    return HEAVENLY_STEMS[_cycle_index(offset, 10)], EARTHLY_BRANCHES[_cycle_index(offset, 12)]


def zodiac_for_year(year: int) -> str:
    return ZODIAC_ANIMALS[(year - 4) % 12]


def date_hash(text: str, seed: int = 0) -> int:
    """Rolling 32-bit string hash (``h * 31 + c``), returned as a non-negative int."""
    h = seed
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def pick_items(items: tuple[str, ...] | list[str], seed: int, count: int) -> list[str]:
    """Deterministically shuffle *items* (Fisher-Yates driven by an LCG) and take *count*."""
    shuffled = list(items)
    h = seed
    for i in range(len(shuffled) - 1, 0, -1):
        h = (h * 1103515245 + 12345) & 0x7FFFFFFF
        j = h % (i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled[:count]


def activity_lists(date_key: str) -> tuple[list[str], list[str]]:
    """Favorable and unfavorable activities for *date_key*, disjoint, 3 to 5 items each."""
    favorable_hash = date_hash(date_key, FAVORABLE_SEED)
    unfavorable_hash = date_hash(date_key, UNFAVORABLE_SEED)

    favorable = pick_items(FAVORABLE_CANDIDATES, favorable_hash, MIN_ITEMS + favorable_hash % 3)
    unfavorable = pick_items(UNFAVORABLE_CANDIDATES, unfavorable_hash, MIN_ITEMS + unfavorable_hash % 3)

    unfavorable = [item for item in unfavorable if item not in favorable]
    if len(unfavorable) < MIN_ITEMS:
        pool = [item for item in UNFAVORABLE_CANDIDATES if item not in favorable and item not in unfavorable]
        unfavorable += pick_items(pool, unfavorable_hash + TOP_UP_OFFSET, MIN_ITEMS - len(unfavorable))
    return favorable, unfavorable


def almanac_for(day: date | str) -> AlmanacInfo:
    """Almanac metadata for *day* (a date, datetime or ``YYYY-MM-DD`` key)."""
    day = parse_date_key(day)
    stem, branch = day_stem_branch(day)
    favorable, unfavorable = activity_lists(day.isoformat())
    return AlmanacInfo(
        day_stem=stem,
        day_branch=branch,
        combined_day_label=f"{stem}{branch}",
        zodiac_year=zodiac_for_year(day.year),
        favorable=tuple(favorable),
        unfavorable=tuple(unfavorable),
    )
