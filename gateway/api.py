"""HTTP routes: signup, login, post, search"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from around.app import AroundApp
from around.models.account import LoginRequest, SignupRequest
from around.models.post import IngestStatus
from around.services.ingestion import parse_submission
from around.utils.logger import get_logger
from .auth_deps import get_around, require_auth

logger = get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


@router.post("/signup", response_class=PlainTextResponse)
async def signup(body: SignupRequest, around: AroundApp = Depends(get_around)):
    """
    Create an account.

    Request (JSON): {"username", "password", "age", "gender"}
    Response: plain-text confirmation, 500 on validation failure or duplicate.
    """
    logger.info("Received one sign up", username=body.username)
    await run_in_threadpool(around.auth.signup, body)
    return PlainTextResponse("User added successfully", headers=CORS_HEADERS)


@router.post("/login", response_class=PlainTextResponse)
async def login(body: LoginRequest, around: AroundApp = Depends(get_around)):
    """
    Exchange credentials for a bearer token.

    Response: the token as plain text, 403 on invalid credentials.
    """
    logger.info("Received one login request", username=body.username)
    token = await run_in_threadpool(around.auth.login, body.username, body.password)
    return PlainTextResponse(token, headers=CORS_HEADERS)


@router.post("/post")
async def create_post(
    message: Optional[str] = Form(None),
    lat: Optional[str] = Form(None),
    lon: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    username: str = Depends(require_auth),
    around: AroundApp = Depends(get_around),
):
    """
    Publish a post for the authenticated user.

    Request (multipart): message, lat, lon, optional image file.
    Response: {id, user, message, url, location}; 207 with "missing" when
    only some stores recorded the post.
    """
    media = image.file if image is not None and image.filename else None
    content_type = image.content_type if media is not None else None
    submission = parse_submission(message, lat, lon, media=media, content_type=content_type)

    result = await run_in_threadpool(around.pipeline.submit, username, submission)

    body = result.post.model_dump(exclude_none=True)
    if result.status == IngestStatus.PARTIAL_SUCCESS:
        body["missing"] = sorted(result.missing)
        return JSONResponse(body, status_code=status.HTTP_207_MULTI_STATUS, headers=CORS_HEADERS)
    return JSONResponse(body, headers=CORS_HEADERS)


@router.get("/search")
async def search(
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    range: Optional[str] = Query(None),
    username: str = Depends(require_auth),
    around: AroundApp = Depends(get_around),
):
    """Posts within `range` kilometers (default 200) of lat/lon, in index order."""
    posts = await run_in_threadpool(around.geo.search_raw, lat, lon, range)
    return JSONResponse(
        [p.model_dump(exclude_none=True) for p in posts],
        headers=CORS_HEADERS,
    )


@router.get("/health")
async def health(around: AroundApp = Depends(get_around)):
    return JSONResponse(
        {"status": "ok", "service": around.config.app.name, "version": around.config.app.version},
        headers=CORS_HEADERS,
    )
