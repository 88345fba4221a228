"""
Tests for settings, structured logging and backend selection.
"""
import io
import json
import logging

import pytest

from fityog.core.config import Settings
from fityog.core.exceptions import ResponseFormatError
from fityog.core.logging import JSONFormatter, TextFormatter, setup_logging
from fityog.schemas import User
from fityog.services.storage import MemoryStorage, SqlStorage, create_storage

from conftest import completion


def test_database_url_from_parts():
    settings = Settings(
        DATABASE_URL=None,
        POSTGRES_USER="fit",
        POSTGRES_PASSWORD="yog",
        POSTGRES_HOST="db",
        POSTGRES_PORT=6543,
        POSTGRES_DB="fityog_test",
    )
    assert settings.database_url == "postgresql://fit:yog@db:6543/fityog_test"


def test_database_url_override():
    settings = Settings(DATABASE_URL="sqlite:///./fityog.db")
    assert settings.database_url == "sqlite:///./fityog.db"


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord(
        name="fityog.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Booking %s requested",
        args=(7,),
        exc_info=None,
    )
    record.extra_fields = {"user_id": 3, "expert_id": 1}

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Booking 7 requested"
    assert data["level"] == "INFO"
    assert data["user_id"] == 3
    assert data["expert_id"] == 1


def test_memory_backend_selected(settings):
    assert isinstance(create_storage(settings), MemoryStorage)


def test_database_backend_creates_schema(settings):
    settings.STORAGE_BACKEND = "database"
    settings.DATABASE_URL = "sqlite:///:memory:"

    storage = create_storage(settings)
    try:
        assert isinstance(storage, SqlStorage)
        assert storage.get_experts() == []
        assert storage.session_store.ttl_s == settings.SESSION_TTL_S
    finally:
        storage.close()


def _console_formatter(root_logger):
    [handler] = [h for h in root_logger.handlers if getattr(h, "_fityog_console", False)]
    return handler.formatter


def test_text_logs_keep_failed_prompt_and_reply(settings, gateway, openai_client):
    settings.LOG_FORMAT = "text"
    root_logger = setup_logging(settings)
    formatter = _console_formatter(root_logger)
    assert isinstance(formatter, TextFormatter)

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    gateway_logger = logging.getLogger("fityog.services.recommendation_gateway")
    gateway_logger.addHandler(handler)
    openai_client.chat.completions.create.return_value = completion("not json")
    try:
        with pytest.raises(ResponseFormatError):
            gateway.recommend("my knees hurt when I squat", User(id=1, username="alice", password="x"))
    finally:
        gateway_logger.removeHandler(handler)

    [failure] = [line for line in stream.getvalue().splitlines() if " - ERROR - " in line]
    assert "my knees hurt when I squat" in failure
    assert '"upstream": "not json"' in failure


def test_text_formatter_without_extra_fields():
    record = logging.LogRecord("fityog.test", logging.INFO, __file__, 1, "plain", None, None)
    assert TextFormatter().format(record).endswith(" - fityog.test - INFO - plain")
