import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from config import get_settings
from database import init_db
from router import router
from auth import auth_router

# fails fast when JWT_SECRET is missing
settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Expense Tracker API ready (%s)", settings.app_environment)
    yield


app = FastAPI(title="Expense Tracker API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": errors}),
    )


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    # no route matched: the router never set an endpoint
    if exc.status_code == status.HTTP_404_NOT_FOUND and "endpoint" not in request.scope:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": "Resource not found"},
        )
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth_router, prefix=f"{settings.api_prefix}/auth", tags=["authentication"])
app.include_router(router, prefix=settings.api_prefix, tags=["expenses"])


@app.get("/")
def home():
    return {
        "message": "Expense Tracker API is running",
        "environment": settings.app_environment,
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
