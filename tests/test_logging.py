import json
import logging
from datetime import date
from decimal import Decimal

import pytest
import structlog
from honey_ledger import HoneyLedger
from honey_ledger.logging import configure_logging, get_logger
from honey_ledger.schemas import CreateIntakeRequest, IntakeLotRequest


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


def _entries(captured: str) -> list[dict]:
    return [json.loads(line) for line in captured.splitlines() if line.strip()]


class TestConfigureLogging:
    def test_emits_json_with_service_name(self, capsys):
        configure_logging("honey-ledger-test", log_level="INFO", force=True)

        get_logger("honey_ledger.tests").info("drum_committed", drum_id="d-1", total_kg="350")

        entries = _entries(capsys.readouterr().out)
        assert entries[-1]["event"] == "drum_committed"
        assert entries[-1]["service"] == "honey-ledger-test"
        assert entries[-1]["drum_id"] == "d-1"
        assert entries[-1]["level"] == "info"
        assert "timestamp" in entries[-1]

    def test_level_filters_debug(self, capsys):
        configure_logging("honey-ledger-test", log_level="INFO", force=True)
        logger = get_logger("honey_ledger.tests")

        logger.debug("allocation_planned")
        logger.warning("drum_commit_conflict", lot_ids=["a"])

        events = [e["event"] for e in _entries(capsys.readouterr().out)]
        assert events == ["drum_commit_conflict"]

    def test_engine_operations_log_events(self, capsys):
        """Lot registration and drum commits are visible in the JSON stream"""
        configure_logging("honey-ledger-test", log_level="INFO", force=True)
        ledger = HoneyLedger()
        intake = ledger.register_intake(
            CreateIntakeRequest(
                beekeeper_id="apc-010",
                received_on=date(2025, 3, 4),
                lots=[IntakeLotRequest(honey_type_id=1, moisture_percent=Decimal("18"), quantity_kg=Decimal("40"))],
            )
        )
        draft = ledger.new_draft()
        ledger.add_lot(draft, intake.lot_ids[0])
        ledger.commit_drum(draft)

        events = [e["event"] for e in _entries(capsys.readouterr().out)]
        assert "lot_registered" in events
        assert "drum_committed" in events
