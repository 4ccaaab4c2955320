"""
Flute profiles - take-up factor and height per corrugation type.

The take-up (fluting) factor is how much more medium paper a flute consumes per
linear metre than its flat GSM suggests.
"""
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class FluteProfile:
    flute_type: str
    fluting_factor: float
    height: float  # mm
    description: str = ""


DEFAULT_FLUTE_PROFILES: dict[str, FluteProfile] = {
    'A': FluteProfile('A', 1.55, 4.8, 'A Flute (Largest)'),
    'B': FluteProfile('B', 1.35, 2.5, 'B Flute (Medium)'),
    'C': FluteProfile('C', 1.45, 3.6, 'C Flute (Large)'),
    'E': FluteProfile('E', 1.25, 1.2, 'E Flute (Small)'),
    'F': FluteProfile('F', 1.20, 0.8, 'F Flute (Micro)'),
}

# Valid flute combinations per ply
FLUTE_COMBINATIONS: dict[str, tuple[str, ...]] = {
    '3': ('A', 'B', 'C', 'E', 'F'),
    '5': ('AA', 'AB', 'AC', 'AE', 'BB', 'BC', 'BE', 'CC', 'CE', 'EE', 'EF', 'FF'),
    '7': ('AAA', 'AAB', 'ABC', 'ABB', 'BBC', 'BCC', 'BCB', 'BCE', 'BBE', 'CCE', 'CEE'),
    '9': ('AAAA', 'AABB', 'ABBC', 'BBCC', 'BCCE', 'BBCE', 'CCEE'),
}


def combinations_for_ply(ply: str) -> tuple[str, ...]:
    """Flute combinations offered for a ply; mono board has none."""
    return FLUTE_COMBINATIONS.get(str(ply), ())


def fluting_factors_for_combination(
    combination: str,
    profiles: Optional[Mapping[str, FluteProfile]] = None,
    default_factor: float = 1.35,
) -> list[float]:
    """One take-up factor per flute letter, in board order."""
    profiles = profiles if profiles is not None else DEFAULT_FLUTE_PROFILES
    factors = []
    for letter in combination.upper():
        profile = profiles.get(letter) or DEFAULT_FLUTE_PROFILES.get(letter)
        factors.append(profile.fluting_factor if profile else default_factor)
    return factors
