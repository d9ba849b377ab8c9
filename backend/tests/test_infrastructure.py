import json
import logging

import pytest
from sqlalchemy.pool import StaticPool

from resit_portal.database import engine_options
from resit_portal.logging_config import StructuredJsonFormatter, get_logger, request_id_var
from resit_portal.models import Exam, Grade, Notification, User


def test_engine_options_by_backend():
    assert engine_options("postgresql://u:p@db/resits")["pool_pre_ping"] is True
    assert engine_options("sqlite://")["poolclass"] is StaticPool
    file_options = engine_options("sqlite:///./resit_portal.db")
    assert "poolclass" not in file_options
    assert file_options["connect_args"] == {"check_same_thread": False}


@pytest.mark.parametrize("column", [
    User.__table__.c.created_at,
    Grade.__table__.c.updated_at,
    Exam.__table__.c.created_at,
    Notification.__table__.c.created_at,
])
def test_timestamps_are_timezone_aware(column):
    assert column.type.timezone is True


def test_log_entry_carries_channel_and_request_id():
    logger = get_logger("grading")
    record = logger.makeRecord(
        logger.name, logging.WARNING, __file__, 1, "Grade row %d rejected", (3,), None,
        extra={"context": {"course_id": 7}, "extra_data": {"row": 3}},
    )
    token = request_id_var.set("req-1")
    try:
        entry = json.loads(StructuredJsonFormatter().format(record))
    finally:
        request_id_var.reset(token)

    assert entry["channel"] == "grading"
    assert entry["level"] == "WARNING"
    assert entry["message"] == "Grade row 3 rejected"
    assert entry["context"] == {"request_id": "req-1", "course_id": 7}
    assert entry["extra"] == {"row": 3}
