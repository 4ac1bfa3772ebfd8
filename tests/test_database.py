import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase

import crud
import models
import schemas
from conftest import PAYLOAD
from database import Base, connect, create_db_engine, run_transaction
from exceptions import DatabaseConnectionError, WriteError


class SerializationFailure(Exception):
    pgcode = "40001"


class DiskFull(Exception):
    pgcode = "53100"


def conflict(orig=None):
    return OperationalError("INSERT INTO ethgasdata ...", {}, orig or SerializationFailure("restart transaction"))


def insert(db):
    sample = schemas.GasPriceSample.model_validate(PAYLOAD)
    return crud.create_sample(db, sample, 1700000000)


def test_run_transaction_commits(db):
    persisted = run_transaction(db, insert)

    assert persisted.fast == 5.0
    db.rollback()
    assert db.query(models.GasSample).count() == 1

def test_run_transaction_retries_serialization_failure(db):
    delays = []
    calls = []

    def callback(db):
        calls.append(1)
        if len(calls) == 1:
            raise conflict()
        return insert(db)

    run_transaction(db, callback, max_retries=3, backoff=0.1, sleep=delays.append)

    assert len(calls) == 2
    assert delays == [0.1]
    assert crud.get_fast_series(db) == [5.0]

def test_run_transaction_backoff_doubles(db):
    delays = []
    calls = []

    def callback(db):
        calls.append(1)
        if len(calls) <= 3:
            raise conflict()
        return insert(db)

    run_transaction(db, callback, max_retries=5, backoff=0.1, sleep=delays.append)

    assert delays == pytest.approx([0.1, 0.2, 0.4])

def test_run_transaction_retries_exhausted(db):
    calls = []

    def callback(db):
        calls.append(1)
        raise conflict()

    with pytest.raises(WriteError):
        run_transaction(db, callback, max_retries=2, sleep=lambda s: None)

    assert len(calls) == 3

def test_run_transaction_does_not_retry_other_errors(db):
    calls = []

    def callback(db):
        calls.append(1)
        raise conflict(DiskFull("could not extend file"))

    with pytest.raises(WriteError):
        run_transaction(db, callback, sleep=lambda s: None)

    assert len(calls) == 1

def test_run_transaction_constraint_violation(db, api_key):
    def callback(db):
        db.add(models.ApiKey(name="data.defipulse", key="duplicate"))
        db.flush()

    with pytest.raises(WriteError):
        run_transaction(db, callback, sleep=lambda s: None)

    assert crud.get_api_key(db, "data.defipulse") == api_key

def test_run_transaction_rolls_back_failed_attempt(db):
    def callback(db):
        insert(db)
        raise conflict(DiskFull("could not extend file"))

    with pytest.raises(WriteError):
        run_transaction(db, callback, sleep=lambda s: None)

    assert crud.get_fast_series(db) == []

def test_connect(engine):
    session = connect(engine)
    try:
        assert session.bind is engine
    finally:
        session.close()

def test_connect_failure(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path}/missing/dir/gas.db")

    with pytest.raises(DatabaseConnectionError):
        connect(engine)

def test_models_use_declarative_base():
    assert issubclass(Base, DeclarativeBase)
    assert issubclass(models.GasSample, Base)
    assert issubclass(models.ApiKey, Base)
    assert set(Base.metadata.tables) == {"ethgasdata", "api_key_store"}
