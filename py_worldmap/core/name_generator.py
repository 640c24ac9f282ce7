"""
Country name generation.

Names combine a base name with a polity word chosen by the country's size
relative to the others. One large country is picked to be a dynasty and
gets a short one-syllable base instead. Names are unique within a map.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Sequence

from .mulberry_prng import Mulberry32


class PolityTier(Enum):
    """Size class of a country relative to the average and the largest."""

    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"


POLITY_WORDS: Dict[PolityTier, List[str]] = {
    PolityTier.LARGE: [
        "Federal Republic", "People's Republic", "Empire", "Federation",
        "Grand Duchy", "United Kingdom", "United States", "Union",
    ],
    PolityTier.MEDIUM: [
        "Republic", "Kingdom", "Federation", "Principality",
        "Covenant", "Autonomous Republic", "Commonwealth", "Realm",
    ],
    PolityTier.SMALL: [
        "Principality", "Dominion", "Autonomous Province", "Territory",
        "Margraviate", "Free City", "Autonomous Region", "Protectorate",
    ],
}

BASE_NAMES = [
    "Astra", "Belka", "Cordo", "Drania", "Elda", "Farne", "Garm", "Helio",
    "Iris", "Juno", "Karna", "Lodia", "Molda", "Norde", "Orta", "Prana",
    "Queri", "Linea", "Solna", "Tris", "Urna", "Valea", "Weld", "Zaina",
    "Yorm", "Zenoa", "Mirad", "Latia", "Selim", "Neora", "Aldia", "Benes",
    "Clova", "Delmia", "Estra", "Ferno", "Gradia", "Harmoni", "Ignis",
    "Jerba", "Cantia", "Lumeria", "Merinoa", "Nadia", "Orphe", "Primula",
    "Cresia", "Rosalia", "Salvia", "Terano", "Wista", "Verna", "Kyrie",
    "Lumina", "Selena", "Travia", "Yggdra", "Vanira", "Elysia", "Montea",
    "Noctia", "Aurora", "Perido", "Quartza", "Luxia", "Sigma", "Talis",
    "Winga", "Vesta", "Zephyra", "Aries", "Cassia", "Domina", "Enfi",
    "Floria", "Gilda", "Horn", "Iseria", "Carena", "Levina", "Mistra",
    "Neris", "Octa", "Palmia", "Quinte", "Regna", "Saphia", "Tirea",
    "Ultia", "Valda", "Wenus", "Zerio", "Amyra", "Blanca", "Sierra",
    "Diana", "Estel", "Fiora", "Grace", "Hazel", "Evelyn",
]

DYNASTY_BASES = [
    "Hua", "Yan", "Chu", "Qin", "Zhao", "Wei", "Wu", "Han", "Qi", "Liang",
    "Yue", "Jin", "Song", "Tang", "Liao", "Cang", "Lin", "Yao", "Ling", "Feng",
]


def polity_tier(area: int, avg_area: float, max_area: int) -> PolityTier:
    ratio = area / max(1, avg_area)
    max_ratio = area / max(1, max_area)
    if max_ratio >= 0.62 or ratio >= 1.55:
        return PolityTier.LARGE
    if ratio <= 0.58:
        return PolityTier.SMALL
    return PolityTier.MEDIUM


class CountryNameGenerator:
    """Builds unique, size-aware country names."""

    def __init__(self, prng: Mulberry32):
        self.prng = prng

    def pick_dynasty_id(self, areas: Sequence[int]) -> int:
        """
        Area-weighted pick among the largest fifth of countries.

        Only countries at least 1.2x the average area qualify; when none do,
        the whole top fifth is used.
        """
        count = len(areas)
        ranked = sorted(range(count), key=lambda cid: -areas[cid])
        avg_area = sum(areas) / max(1, count)
        top = ranked[: max(1, int(count * 0.2))]
        pool = [cid for cid in top if areas[cid] >= avg_area * 1.2] or top

        total = sum(max(1, areas[cid]) for cid in pool)
        r = self.prng.random() * total
        for cid in pool:
            r -= max(1, areas[cid])
            if r <= 0:
                return cid
        return pool[0]

    def generate(self, areas: Sequence[int]) -> List[str]:
        """One name per country id, in id order."""
        count = len(areas)
        if count == 0:
            return []

        avg_area = sum(areas) / max(1, count)
        max_area = max(max(areas), 1)
        dynasty_id = self.pick_dynasty_id(areas)

        names = []
        used = set()
        for cid in range(count):
            if cid == dynasty_id:
                base = f"{DYNASTY_BASES[cid % len(DYNASTY_BASES)]} Dynasty"
            else:
                words = POLITY_WORDS[polity_tier(areas[cid], avg_area, max_area)]
                base = f"{words[cid % len(words)]} of {BASE_NAMES[cid % len(BASE_NAMES)]}"

            name = base
            serial = 2
            while name in used:
                name = f"{base} {serial}"
                serial += 1
            used.add(name)
            names.append(name)

        return names
