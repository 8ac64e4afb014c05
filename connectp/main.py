from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .routes import router
from .core import redis_startup, init_metrics, shutdown_connections
from .errors import AppError
from .models import init_models
from . import config
import logging
from pythonjsonlogger import jsonlogger

# setup structured logging
logger = logging.getLogger('connectp')
handler = logging.StreamHandler()
formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(logging.INFO)

app = FastAPI(title="ConnectP API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(router, prefix="/api")

@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}

@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg':'request_start','method':request.method,'path':request.url.path})
    response = await call_next(request)
    logger.info({'msg':'request_end','status': response.status_code})
    return response

@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message, **exc.extra})

@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        field = '.'.join(str(p) for p in err.get('loc', ()) if p not in ('body', 'query', 'path'))
        if err.get('type') == 'missing':
            message = 'All fields are required'
        else:
            ctx_error = (err.get('ctx') or {}).get('error')
            message = str(ctx_error) if ctx_error else err.get('msg', 'Invalid value')
        errors.append({'field': field or 'body', 'message': message})
    detail = errors[0]['message'] if errors else 'Invalid request'
    return JSONResponse(status_code=400, content={'detail': detail, 'errors': errors})

@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.error({'msg': 'unhandled_error', 'path': request.url.path, 'error': str(exc)}, exc_info=True)
    return JSONResponse(status_code=500, content={'detail': 'Internal Server Error'})

@app.on_event("startup")
async def startup():
    # Best-effort init, don't block app from starting if a dependency fails
    try:
        await redis_startup()
    except Exception as e:
        logger.warning({'msg': 'redis_start_failed', 'error': str(e)})
    try:
        init_metrics()
    except Exception as e:
        logger.warning({'msg': 'metrics_init_failed', 'error': str(e)})
    if config.AUTO_CREATE_TABLES:
        await init_models()

@app.on_event("shutdown")
async def shutdown():
    await shutdown_connections()
