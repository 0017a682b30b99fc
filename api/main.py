from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routers import data_upload, files, vector_store
from db.database import dispose_db, init_db
from vector_ingest.logger import GLOBAL_LOGGER as log


# Use lifespan instead of deprecated on_event
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Application startup initiated")
    await init_db()
    yield
    await dispose_db()
    log.info("Application shutdown")


app = FastAPI(title="Vector Store Ingestion Backend", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error bodies are always {"error": ..., "details"?: ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}"
        for err in exc.errors()
    ]
    log.warning("Request validation failed | path=%s | errors=%s", request.url.path, messages)
    return JSONResponse(status_code=400, content={"error": ", ".join(messages)})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error | path=%s | error=%s", request.url.path, str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to process request", "details": str(exc)},
    )


# Router Registration
app.include_router(data_upload.router, tags=["upload"])
app.include_router(files.router, tags=["files"])
app.include_router(vector_store.router, tags=["vector-store"])


@app.get("/")
async def root():
    return {"message": "Backend is running"}
