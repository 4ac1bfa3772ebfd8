from sqlalchemy.orm import Session
from typing import List, Optional

import models
import schemas
from exceptions import NotFoundError


def get_api_key(db: Session, name: str) -> str:
    key = db.query(models.ApiKey.key).filter(models.ApiKey.name == name).scalar()
    if key is None:
        raise NotFoundError(f"No API key stored under {name!r}")
    return key

def create_sample(db: Session, sample: schemas.GasPriceSample, ts: int) -> schemas.PersistedSample:
    db_sample = models.GasSample(ts=ts,
                                 fast=sample.fast,
                                 fastest=sample.fastest,
                                 safe_low=sample.safe_low,
                                 average=sample.average)
    db.add(db_sample)
    db.flush()
    return schemas.PersistedSample.model_validate(db_sample)

# Fast prices in insertion order; ts alone is not unique at a 1s poll period
def get_fast_series(db: Session) -> List[float]:
    rows = db.query(models.GasSample.fast).order_by(models.GasSample.ts, models.GasSample.id).all()
    return [row.fast for row in rows]

def get_samples(db: Session, limit: Optional[int] = None) -> List[schemas.PersistedSample]:
    query = db.query(models.GasSample).order_by(models.GasSample.ts.desc(), models.GasSample.id.desc())
    if limit is not None:
        query = query.limit(limit)
    rows = list(reversed(query.all()))
    return [schemas.PersistedSample.model_validate(row) for row in rows]
