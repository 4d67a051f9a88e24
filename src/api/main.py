import re
from typing import List, Optional

from fastapi import FastAPI, Depends, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.config import Settings
from src.api.exceptions import (
    PostGeneratorError,
    InvalidPostIdError,
    ForbiddenError,
    NotFoundError,
)
from src.api.generation import GenerationClient
from src.api.identity import IdentityResolver, IDENTITY_HEADER
from src.api.logger import get_logger, setup_logging
from src.api.prompts import build_prompt
from src.api.schemas import (
    GeneratePostRequest,
    GeneratePostResponse,
    HealthResponse,
    MessageResponse,
    Post,
    PostCreate,
    PostPayload,
    User,
    UserCreate,
)
from src.api.storage import PostStore, create_store

logger = get_logger(__name__)

# Dependencies

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> PostStore:
    return request.app.state.store


def get_generator(request: Request) -> GenerationClient:
    return request.app.state.generator


def get_identity(request: Request) -> IdentityResolver:
    return request.app.state.identity


def get_current_user(
    request: Request,
    store: PostStore = Depends(get_store),
    identity: IdentityResolver = Depends(get_identity),
) -> User:
    """Resolve the authenticated caller to a stored user (401 without identity, 404 if unknown)."""
    external_id = identity.require(request)
    user = store.get_user_by_external_id(external_id)
    if not user:
        raise NotFoundError("User not found")
    return user


POST_ID_PATTERN = re.compile(r"-?[0-9]+")


def parse_post_id(post_id: str) -> int:
    if not POST_ID_PATTERN.fullmatch(post_id):
        raise InvalidPostIdError()
    return int(post_id)

# Error handlers

def _format_field_path(loc) -> str:
    parts = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        elif parts:
            parts.append(f".{item}")
        else:
            parts.append(str(item))
    return "".join(parts)


async def app_error_handler(request: Request, exc: PostGeneratorError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "; ".join(f"{_format_field_path(err['loc'])}: {err['msg']}" for err in exc.errors())
    logger.warning(f"{request.method} {request.url.path} invalid payload: {message}")
    return JSONResponse(status_code=400, content={"message": message or "Invalid request"})


async def catch_unhandled_errors(request: Request, call_next):
    """Turn unexpected exceptions into a 500 inside the CORS middleware so the response keeps its CORS headers."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": PostGeneratorError.default_message})

# Routers
health_router = APIRouter()

@health_router.get("/", response_model=HealthResponse, summary="Health Check", tags=["health"])
def health_check(store: PostStore = Depends(get_store)):
    """
    Health check endpoint.

    Returns:
        JSON message confirming service health and the active storage backend.
    """
    return HealthResponse(message="Healthy", storage=store.name)

users_router = APIRouter(prefix="/users", tags=["users"])

# PUBLIC_INTERFACE
@users_router.post("", response_model=User, summary="Create or get user", description="Return the user for an external auth id, creating it on first sight.")
def create_or_get_user(
    payload: UserCreate,
    request: Request,
    store: PostStore = Depends(get_store),
    identity: IdentityResolver = Depends(get_identity),
):
    if identity.mode == "firebase" and identity.require(request) != payload.firebase_uid:
        raise ForbiddenError()
    return store.get_or_create_user(payload)

generate_router = APIRouter(tags=["generate"])

# PUBLIC_INTERFACE
@generate_router.post("/generate-post", response_model=GeneratePostResponse, summary="Generate post", description="Build a prompt from the request and generate a post with Gemini.")
async def generate_post(payload: GeneratePostRequest, generator: GenerationClient = Depends(get_generator)):
    prompt = build_prompt(
        idea=payload.idea,
        platform=payload.platform,
        tone=payload.tone,
        add_emojis=payload.add_emojis,
        add_hashtags=payload.add_hashtags,
        suggest_images=payload.suggest_images,
    )
    content = await generator.generate(prompt)
    return GeneratePostResponse(content=content, platform=payload.platform, tone=payload.tone)

posts_router = APIRouter(prefix="/posts", tags=["posts"])

# PUBLIC_INTERFACE
@posts_router.get("", response_model=List[Post], summary="List posts", description="Posts saved by the authenticated user, newest first.")
def list_posts(store: PostStore = Depends(get_store), user: User = Depends(get_current_user)):
    return store.get_user_posts(user.id)

# PUBLIC_INTERFACE
@posts_router.post("", response_model=Post, summary="Save post")
def create_post(payload: PostPayload, store: PostStore = Depends(get_store), user: User = Depends(get_current_user)):
    data = PostCreate(**payload.model_dump(), user_id=user.id)
    return store.create_post(data)

# PUBLIC_INTERFACE
@posts_router.delete("/{post_id}", response_model=MessageResponse, summary="Delete post")
def delete_post(
    post_id: str,
    request: Request,
    store: PostStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    identity: IdentityResolver = Depends(get_identity),
):
    """
    Delete a saved post.

    By default any post id is accepted and success is reported even when
    nothing was stored under it. With ENFORCE_DELETE_OWNERSHIP the caller
    must be authenticated and own the post.
    """
    pid = parse_post_id(post_id)
    if settings.enforce_delete_ownership:
        user = get_current_user(request, store, identity)
        post = store.get_post(pid)
        if not post or post.user_id != user.id:
            raise NotFoundError("Post not found")
    store.delete_post(pid)
    return MessageResponse(message="Post deleted successfully")


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    store: Optional[PostStore] = None,
    generator: Optional[GenerationClient] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Settings default to the environment; the store and generation client are
    built from settings unless supplied.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Post Generator Backend",
        description="Backend REST API that generates social media posts with Gemini and keeps a per-user post history.",
        version="1.0.0",
        openapi_tags=[
            {"name": "health", "description": "Service health and metadata"},
            {"name": "users", "description": "User registration"},
            {"name": "generate", "description": "Post generation"},
            {"name": "posts", "description": "Saved post history"},
        ],
    )
    app.state.settings = settings
    app.state.store = store or create_store(settings)
    app.state.generator = generator or GenerationClient(api_key=settings.gemini_api_key)
    app.state.identity = IdentityResolver(settings.auth_mode)

    # Registered before CORS so it runs inside it
    app.middleware("http")(catch_unhandled_errors)

    # CORS for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", IDENTITY_HEADER],
    )

    app.add_exception_handler(PostGeneratorError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Register routers
    app.include_router(health_router)
    app.include_router(users_router, prefix="/api")
    app.include_router(generate_router, prefix="/api")
    app.include_router(posts_router, prefix="/api")

    logger.info(f"Post generator ready (storage={settings.storage_backend}, auth={settings.auth_mode})")
    return app


app = create_app()
