import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from .routes import router
from .core import database_startup, storage_startup
from .errors import RecordStoreError
from .metrics import init_metrics
import logging
from pythonjsonlogger.json import JsonFormatter

# setup structured logging
logger = logging.getLogger('app')
handler = logging.StreamHandler()
formatter = JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

METRICS_PORT = int(os.getenv('METRICS_PORT', '8001'))

app = FastAPI(title="Manna API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(router, prefix="/api")


@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request: Request, exc: RecordStoreError):
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.detail})


@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}


@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
    response = await call_next(request)
    logger.info({'msg': 'request_end', 'status': response.status_code})
    return response


@app.on_event("startup")
async def startup():
    # Best-effort init, don't block app from starting if a dependency fails
    if await database_startup():
        try:
            await storage_startup()
        except SQLAlchemyError as e:
            logger.warning({'msg': 'bucket_seed_failed', 'error': str(e)})
    init_metrics(METRICS_PORT)


@app.on_event("shutdown")
async def shutdown():
    from .models import engine
    await engine.dispose()
