import logging
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from box_costing.engine.paper_pricing import RateMemory
from box_costing.services import RateMemoryService


@pytest.fixture
def service(tmp_path):
    return RateMemoryService(tmp_path / 'rate_memory.csv')


def test_missing_file_is_empty(service):
    assert service.list_rates() == []
    assert len(service.load()) == 0


def test_remember_round_trip(service):
    service.remember(22, 'Kraft/Natural', 46)
    service.remember(18.5, 'Testliner', 41.25)

    memory = service.load()
    assert memory.get(22, 'Kraft/Natural') == 46
    assert memory.get(18.5, 'Testliner') == 41.25


def test_remember_overwrites_same_key(service):
    service.remember(22, 'Kraft/Natural', 46)
    service.remember(22.0, 'Kraft/Natural', 48)
    assert len(service.list_rates()) == 1
    assert service.load().get(22, 'Kraft/Natural') == 48


def test_save_writes_all_entries(service):
    memory = RateMemory()
    memory.remember(20, 'Golden Kraft', 50)
    memory.remember(16, 'Kraft/Natural', 39)
    service.save(memory)

    text = service.csv_path.read_text(encoding='utf-8')
    assert text.splitlines()[0] == 'bf_value,shade,rate'
    assert '20,Golden Kraft,50.00' in text


def test_bad_rows_are_skipped(service, caplog):
    service.csv_path.write_text(
        "bf_value,shade,rate\n22,Kraft/Natural,46\nxx,Testliner,40\n",
        encoding='utf-8',
    )
    with caplog.at_level(logging.WARNING):
        rates = service.list_rates()
    assert len(rates) == 1
    assert "Skipping bad rate memory row 3" in caplog.text
