import traceback

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

import models  # noqa: F401  registers every table on Base.metadata
from config import API_LOG_PATH
from database import Base, engine
from routes import (
    users,
    follows,
    feed,
    likes,
    posts,
    rankings,
)
from utils.errors import SocialError
from utils.logger import setup_api_logger

Base.metadata.create_all(bind=engine)

app = FastAPI(title="RankFeed API (Users, Follows, Feed, Likes, Posts, Ranking Lists)")

# setup file logger for API failures
api_logger = setup_api_logger(API_LOG_PATH)


async def _request_body(request) -> str:
    try:
        body = await request.body()
    except Exception:
        body = b""
    return body.decode('utf-8', errors='replace')


@app.exception_handler(SocialError)
async def social_error_handler(request, exc: SocialError):
    # expected per-request failures: reported to the caller, never raised past here
    api_logger.info("%s on %s %s | status=%s | error=%s",
                    type(exc).__name__, request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "kind": exc.kind},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    # log request info and stacktrace
    body = await _request_body(request)
    tb = traceback.format_exc()
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s\n%s",
                     request.method, request.url.path, body, str(exc), tb)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    body = await _request_body(request)
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code, body, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(users.router)
app.include_router(follows.router)
app.include_router(feed.router)
app.include_router(likes.router)
app.include_router(posts.router)
app.include_router(rankings.router)
