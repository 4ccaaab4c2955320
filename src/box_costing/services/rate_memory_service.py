"""
Rate Memory Service - persists remembered manual paper rates.
Handles reading/writing rate_memory.csv and hydrating a RateMemory for the engine.
"""
import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..engine.paper_pricing import RateMemory

logger = logging.getLogger(__name__)


@dataclass
class RememberedRate:
    """A manual rate entered for a BF + shade."""
    bf_value: float
    shade: str
    rate: float

    def to_csv_row(self) -> dict:
        """Convert to CSV row format."""
        return {
            'bf_value': f"{self.bf_value:g}",
            'shade': self.shade,
            'rate': f"{self.rate:.2f}",
        }

    @classmethod
    def from_csv_row(cls, row: dict) -> 'RememberedRate':
        """Create RememberedRate from CSV row."""
        return cls(
            bf_value=float(row['bf_value']),
            shade=(row.get('shade') or '').strip(),
            rate=float(row['rate']),
        )


class RateMemoryService:
    """Service for loading and saving remembered rates."""

    CSV_COLUMNS = ['bf_value', 'shade', 'rate']

    def __init__(self, csv_path: Path):
        self.csv_path = Path(csv_path)

    def list_rates(self) -> list[RememberedRate]:
        """List all remembered rates from CSV. Unreadable rows are skipped with a warning."""
        rates = []
        if not self.csv_path.exists():
            return rates

        with open(self.csv_path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for line, row in enumerate(reader, start=2):
                if not row.get('bf_value'):
                    continue
                try:
                    rates.append(RememberedRate.from_csv_row(row))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping bad rate memory row %d in %s", line, self.csv_path.name)
        return rates

    def load(self) -> RateMemory:
        """Hydrate a RateMemory; later rows for the same BF + shade win."""
        memory = RateMemory()
        for entry in self.list_rates():
            memory.remember(entry.bf_value, entry.shade, entry.rate)
        logger.debug("Loaded %d remembered rates from %s", len(memory), self.csv_path)
        return memory

    def save(self, memory: RateMemory):
        """Write every entry of a RateMemory back to CSV."""
        rates = []
        for key, rate in sorted(memory.entries().items()):
            bf_text, _, shade = key.partition('|')
            rates.append(RememberedRate(bf_value=float(bf_text), shade=shade, rate=rate))
        self._write_rates(rates)

    def remember(self, bf: float, shade: str, rate: float, memory: Optional[RateMemory] = None) -> RateMemory:
        """Record one rate and persist it. Returns the updated memory."""
        memory = memory if memory is not None else self.load()
        memory.remember(bf, shade, rate)
        self.save(memory)
        return memory

    def _write_rates(self, rates: list[RememberedRate]):
        self.csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for entry in rates:
                writer.writerow(entry.to_csv_row())
