"""
Price Book Loader - builds an immutable PriceBook from files in a directory.

Expected files:
    bf_prices.csv        bf_value, base_price              (required)
    shade_premiums.csv   shade_name, premium               (optional)
    pricing_rules.json   PricingRule fields                (optional)
    flute_settings.csv   flute_type, fluting_factor, height, description  (optional)
"""
import json
import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..config.settings import get_settings
from ..engine.flutes import FluteProfile
from ..engine.paper_pricing import PriceBook, PricingRule

logger = logging.getLogger(__name__)

BF_PRICES_FILE = 'bf_prices.csv'
SHADE_PREMIUMS_FILE = 'shade_premiums.csv'
PRICING_RULES_FILE = 'pricing_rules.json'
FLUTE_SETTINGS_FILE = 'flute_settings.csv'


class PriceBookError(ValueError):
    """A price book file is missing or malformed."""


class BfPriceRow(BaseModel):
    bf_value: float = Field(gt=0)
    base_price: float = Field(ge=0)


class ShadePremiumRow(BaseModel):
    shade_name: str = Field(min_length=1)
    premium: float = 0.0


class FluteSettingRow(BaseModel):
    flute_type: str = Field(min_length=1, max_length=1)
    fluting_factor: float = Field(gt=0)
    height: float = Field(ge=0)
    description: str = ""

    @field_validator('flute_type')
    @classmethod
    def upper_flute(cls, v: str) -> str:
        return v.upper()


class PricingRuleModel(BaseModel):
    low_gsm_limit: float = 101.0
    high_gsm_limit: float = 201.0
    low_gsm_adjustment: float = 0.0
    high_gsm_adjustment: float = 0.0
    market_adjustment: float = 0.0


def _load_csv(path: Path) -> pd.DataFrame:
    """Read a CSV as strings with stripped headers and cells."""
    try:
        df = pd.read_csv(path, dtype=str).fillna('')
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise PriceBookError(f"Cannot read {path.name}: {e}") from e
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def _validate_rows(path: Path, model: type[BaseModel]) -> list:
    df = _load_csv(path)
    missing = [name for name, f in model.model_fields.items() if f.is_required() and name not in df.columns]
    if missing:
        raise PriceBookError(f"{path.name} is missing columns: {', '.join(missing)}")

    rows = []
    for line, record in enumerate(df.to_dict(orient='records'), start=2):
        # Blank cells fall back to the model default
        values = {k: v for k, v in record.items() if v != ''}
        if not values:
            continue
        try:
            rows.append(model.model_validate(values))
        except ValidationError as e:
            raise PriceBookError(f"{path.name} line {line}: {e}") from e
    return rows


def load_bf_prices(path: Path) -> dict[float, float]:
    prices = {}
    for row in _validate_rows(path, BfPriceRow):
        if row.bf_value in prices:
            logger.warning("Duplicate BF %g in %s, keeping last price", row.bf_value, path.name)
        prices[row.bf_value] = row.base_price
    return prices


def load_shade_premiums(path: Path) -> dict[str, float]:
    return {row.shade_name: row.premium for row in _validate_rows(path, ShadePremiumRow)}


def load_flute_profiles(path: Path) -> dict[str, FluteProfile]:
    return {
        row.flute_type: FluteProfile(
            flute_type=row.flute_type,
            fluting_factor=row.fluting_factor,
            height=row.height,
            description=row.description,
        )
        for row in _validate_rows(path, FluteSettingRow)
    }


def load_pricing_rule(path: Path) -> PricingRule:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PriceBookError(f"Cannot read {path.name}: {e}") from e
    try:
        model = PricingRuleModel.model_validate(data)
    except ValidationError as e:
        raise PriceBookError(f"{path.name}: {e}") from e
    return PricingRule(**model.model_dump())


def load_price_book(directory: Optional[Union[str, Path]] = None) -> PriceBook:
    """
    Load a PriceBook snapshot from a directory of price files.

    Args:
        directory: Price book directory; the packaged sample data when None

    Raises:
        PriceBookError: bf_prices.csv is missing or any file fails validation
    """
    if directory is None:
        directory = get_settings().price_book_dir
    directory = Path(directory)

    bf_path = directory / BF_PRICES_FILE
    if not bf_path.exists():
        raise PriceBookError(f"{BF_PRICES_FILE} not found in {directory}")
    bf_prices = load_bf_prices(bf_path)

    shade_premiums = {}
    shade_path = directory / SHADE_PREMIUMS_FILE
    if shade_path.exists():
        shade_premiums = load_shade_premiums(shade_path)

    rules = None
    rules_path = directory / PRICING_RULES_FILE
    if rules_path.exists():
        rules = load_pricing_rule(rules_path)

    flute_profiles = None
    flute_path = directory / FLUTE_SETTINGS_FILE
    if flute_path.exists():
        flute_profiles = load_flute_profiles(flute_path)

    logger.info(
        "Loaded price book from %s: %d BF prices, %d shades",
        directory, len(bf_prices), len(shade_premiums),
    )
    return PriceBook.build(
        bf_prices=bf_prices,
        shade_premiums=shade_premiums,
        rules=rules,
        flute_profiles=flute_profiles,
    )
