import pytest
from sqlalchemy.orm import Session

from database import create_db_engine
import models

PAYLOAD = {
    "fast": 5.0,
    "fastest": 7.0,
    "safeLow": 3.0,
    "average": 4.5,
    "block_time": 13.2,
    "blockNum": 100,
    "speed": 0.9,
}


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = Session(bind=engine, autoflush=False)
    yield session
    session.close()


@pytest.fixture
def api_key(db):
    db.add(models.ApiKey(name="data.defipulse", key="secret"))
    db.commit()
    return "secret"
