import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

import database
from main import app


def test_unreachable_database_halts_startup(monkeypatch, caplog):
    broken = create_engine("sqlite:////nonexistent/dir/students.db")
    monkeypatch.setattr(database, "engine", broken)

    with caplog.at_level(logging.ERROR):
        with pytest.raises(OperationalError):
            with TestClient(app):
                pass

    assert "Database connection error" in caplog.text
    broken.dispose()


def test_unknown_mail_backend_halts_startup(monkeypatch, caplog):
    monkeypatch.setenv("MAIL_BACKEND", "pigeon")

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ValueError):
            with TestClient(app):
                pass

    assert "Mail configuration error" in caplog.text
