"""
Centralized settings, domain constants and path configuration for the costing engine.
"""
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


PLY_OPTIONS = ('1', '3', '5', '7', '9')

# Board thickness per ply (mm), used for OD -> ID adjustment
DEFAULT_PLY_THICKNESS = {
    '1': 0.45,
    '3': 3.0,
    '5': 5.0,
    '7': 7.0,
    '9': 11.0,
}

GLUE_FLAP_DEFAULTS = {
    '1': 50.0,
    '3': 45.0,
    '5': 50.0,
    '7': 60.0,
    '9': 70.0,
}

DECKLE_ALLOWANCE_DEFAULTS = {
    '1': 30.0,
    '3': 25.0,
    '5': 30.0,
    '7': 35.0,
    '9': 40.0,
}

# Extra flap added when an RSC blank exceeds the max length threshold (2-piece boxes)
ADDITIONAL_FLAP_INCREMENTS = {
    '1': 50.0,
    '3': 50.0,
    '5': 60.0,
    '7': 70.0,
    '9': 80.0,
}


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_package_root() -> Path:
    """Directory of the box_costing package."""
    return Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    """Engine settings with sensible defaults."""

    # Project paths
    project_root: Path
    price_book_dir: Path
    rate_memory_csv: Path

    # Ply-indexed lookup tables
    ply_thickness: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PLY_THICKNESS))
    glue_flap_defaults: dict[str, float] = field(default_factory=lambda: dict(GLUE_FLAP_DEFAULTS))
    deckle_allowance_defaults: dict[str, float] = field(default_factory=lambda: dict(DECKLE_ALLOWANCE_DEFAULTS))
    additional_flap_increments: dict[str, float] = field(default_factory=lambda: dict(ADDITIONAL_FLAP_INCREMENTS))

    # Unrecognized ply keys resolve to this entry
    fallback_ply: str = '3'

    sheet_allowance_default: float = 10.0

    # mm x mm x g/m2 -> sheet weight
    weight_divisor: float = 1_000_000.0

    # McKee: BCT = k * ECT^a * thickness_cm^b * perimeter^c
    mckee_constant: float = 5.87
    mckee_ect_exponent: float = 1.0
    mckee_thickness_exponent: float = 0.5
    mckee_perimeter_exponent: float = 0.5
    thickness_mm_per_cm: float = 10.0

    default_fluting_factor: float = 1.5
    default_flute_height: float = 2.5

    # Costing
    markup_percent: float = 15.0
    conversion_cost_per_kg: float = 15.0

    def ply_value(self, table: dict[str, float], ply: str) -> float:
        """Look up a ply-indexed value, falling back to the fallback ply entry."""
        ply = str(ply).strip()
        if ply in table:
            return table[ply]
        logger.warning("Unrecognized ply %r, using %s-ply entry", ply, self.fallback_ply)
        return table[self.fallback_ply]

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure."""
        root = project_root or get_project_root()
        price_book_dir = get_package_root() / 'pricebook' / 'data'

        return cls(
            project_root=root,
            price_book_dir=price_book_dir,
            rate_memory_csv=root / 'rate_memory.csv',
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
