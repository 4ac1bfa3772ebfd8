from fastapi import FastAPI, Depends, Query
from fastapi.responses import PlainTextResponse, RedirectResponse
from contextlib import asynccontextmanager
from typing import List, Optional
import logging
import os
import signal
import sys
from sqlalchemy.orm import Session

from chart import ChartRenderer, render, trim_window
from config import load_settings
from database import SessionLocal, connect, create_db_engine
from poller import GasPoller, start_scheduler
import models
import schemas
import crud

logger = logging.getLogger(__name__)

settings = load_settings()

# Set once the application has started
poller: Optional[GasPoller] = None


def stop_process():
    os.kill(os.getpid(), signal.SIGTERM)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global poller

    engine = create_db_engine(settings.database_url)
    db = connect(engine)
    if settings.create_tables:
        models.Base.metadata.create_all(bind=engine)
    SessionLocal.configure(bind=engine)

    poller = GasPoller(db,
                       settings.gas_api_url,
                       ChartRenderer(settings.chart),
                       api_key_name=settings.api_key_name,
                       fetch_timeout=settings.fetch_timeout,
                       tx_max_retries=settings.tx_max_retries,
                       error_policy=settings.error_policy,
                       on_fatal=stop_process)
    scheduler = start_scheduler(poller, settings.poll_interval)
    try:
        yield
    finally:
        scheduler.shutdown()
        db.close()
        engine.dispose()
        logger.info("Poller stopped, database connection closed")


app = FastAPI(lifespan=lifespan)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Root directory redirect to /docs (Swagger)
@app.get('/')
def home():
    return RedirectResponse(url="/docs", status_code=302)


# Most recent persisted samples, oldest first
@app.get('/samples', response_model=List[schemas.PersistedSample])
def get_samples(limit: Optional[int] = Query(default=None, ge=1), db: Session = Depends(get_db)):
    return crud.get_samples(db, limit)


# Fast price series as plotted, after the window is applied
@app.get('/series')
def get_series(db: Session = Depends(get_db)) -> List[float]:
    return trim_window(crud.get_fast_series(db), settings.chart.window_size)


# Current chart as plain text, not rate limited
@app.get('/chart', response_class=PlainTextResponse)
def get_chart(db: Session = Depends(get_db)):
    return render(crud.get_fast_series(db), settings.chart)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
                        stream=sys.stderr)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower(), reload=False)
    if poller is not None and poller.failed:
        sys.exit(1)
