import logging
import re

from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from taskboard.main import LOG_DATEFMT, LOG_FORMAT, create_app

def client_raising(orig: Exception) -> TestClient:
    app = create_app()

    @app.get("/_integrity")
    def _integrity():
        raise IntegrityError("INSERT ...", {}, orig)

    return TestClient(app)

class ForeignKeyViolation(Exception):
    sqlstate = "23503"

class UniqueViolation(Exception):
    sqlstate = "23505"

def test_foreign_key_violation_is_bad_request():
    for orig in (ForeignKeyViolation("violates foreign key"), Exception("FOREIGN KEY constraint failed")):
        r = client_raising(orig).get("/_integrity")
        assert r.status_code == 400
        assert r.json() == {"detail": "invalid reference"}

def test_unique_violation_is_conflict():
    for orig in (UniqueViolation("duplicate key"), Exception("UNIQUE constraint failed: users.email")):
        r = client_raising(orig).get("/_integrity")
        assert r.status_code == 409
        assert r.json() == {"detail": "resource already exists"}

def test_log_timestamps_carry_their_utc_offset():
    record = logging.LogRecord("taskboard", logging.INFO, __file__, 1, "hello", None, None)
    line = logging.Formatter(LOG_FORMAT, LOG_DATEFMT).format(record)
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{4} \[INFO\] taskboard: hello$", line)
