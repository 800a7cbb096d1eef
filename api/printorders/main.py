import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .config import LOG_LEVEL
from .db import init_db
from .errors import OrderError, OrderValidationError
from .routers import admin_auth, allowed_ips, brands, files, forms, items, sections, submissions

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Print Orders API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    init_db()

@app.exception_handler(OrderValidationError)
def handle_validation_error(request: Request, exc: OrderValidationError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message, "errors": exc.errors})

@app.exception_handler(OrderError)
def handle_order_error(request: Request, exc: OrderError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})

@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
def handle_request_error(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"success": False, "error": "Invalid request", "errors": errors})

@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": f"Unexpected server error: {exc}"})

app.include_router(forms.router, prefix="/api", tags=["forms"])
app.include_router(admin_auth.router, prefix="/api/admin", tags=["admin-auth"])
app.include_router(brands.router, prefix="/api/admin/brands", tags=["brands"])
app.include_router(sections.router, prefix="/api/admin/sections", tags=["sections"])
app.include_router(items.router, prefix="/api/admin/items", tags=["items"])
app.include_router(submissions.router, prefix="/api/admin/submissions", tags=["submissions"])
app.include_router(allowed_ips.router, prefix="/api/admin/allowed-ips", tags=["allowed-ips"])
app.include_router(files.router, tags=["files"])

@app.get("/")
def root():
    return {"ok": True, "service": "print-orders-api"}
