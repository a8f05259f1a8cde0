import contextlib
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from databases import Database
from jinja2 import Environment, FileSystemLoader, select_autoescape
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.authentication import requires
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from app import config
from app.auth import (
    BearerTokenBackend,
    HttpTokenVerifier,
    on_auth_error,
    verifier_from_config,
)
from app.html.formatted_recipe import FormattedRecipeHtml
from domain import services
from domain.errors import RecipeBookError
from domain.models import FormattedRecipe
from domain.repository import MirrorPolicy, RecipeBookRepository
from domain.store import KeyValueStore


logger = logging.getLogger(__name__)


FORMAT_ATTEMPTS = 2


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def json_route(route: Callable[..., Awaitable[Any | tuple[Any, int]]]):
    @functools.wraps(route)
    async def wrapper(request: Request) -> JSONResponse:
        try:
            resp = await route(request)
        except RecipeBookError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except Exception as e:
            logger.exception("Error handling %s %s", request.method, request.url.path)
            return JSONResponse({"error": str(e)}, status_code=500)
        if not isinstance(resp, tuple):
            data, code = resp, 200
        else:
            data, code = resp
        return JSONResponse(data, status_code=code)

    return wrapper


async def json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def repo(request: Request) -> RecipeBookRepository:
    return request.app.state.repo


def best_effort_recipe(text: Any) -> FormattedRecipe:
    for attempt in range(1, FORMAT_ATTEMPTS + 1):
        try:
            return services.formatted_recipe(text)
        except Exception:
            logger.exception("Formatting attempt %d failed", attempt)
    return FormattedRecipe()


async def format_recipe(request: Request) -> JSONResponse:
    body = await json_body(request)
    text = body.get("text")
    logger.info("Received text: %s", text)
    recipe = best_effort_recipe(text)
    html = FormattedRecipeHtml(
        recipe, environment=request.app.state.templates
    ).render()
    return JSONResponse({"cleaned_recipe": html})


@requires("authenticated", status_code=401)
@json_route
async def list_categories(request: Request) -> dict[str, Any]:
    logger.info("Fetching categories for user: %s", request.user.uid)
    categories = await services.list_categories(
        request.user.uid, repository=repo(request)
    )
    logger.info("Found %d categories", len(categories))
    return categories


@requires("authenticated", status_code=401)
@json_route
async def create_category(request: Request) -> tuple[dict[str, str], int]:
    body = await json_body(request)
    category = await services.create_category(
        request.user.uid, body.get("name"), repository=repo(request)
    )
    return category.to_dict(), 201


@requires("authenticated", status_code=401)
@json_route
async def rename_category(request: Request) -> dict[str, str]:
    body = await json_body(request)
    category = await services.rename_category(
        request.user.uid,
        request.path_params["cat_id"],
        body.get("name"),
        repository=repo(request),
    )
    return category.to_dict()


@requires("authenticated", status_code=401)
@json_route
async def delete_category(request: Request) -> dict[str, Any]:
    cat_id = request.path_params["cat_id"]
    await services.delete_category(request.user.uid, cat_id, repository=repo(request))
    return {"success": True, "id": cat_id}


@requires("authenticated", status_code=401)
@json_route
async def list_dishes(request: Request) -> dict[str, Any]:
    cat_id = request.path_params["cat_id"]
    dishes = await services.list_dishes(
        request.user.uid, cat_id, repository=repo(request)
    )
    logger.info("Found %d dishes in category %s", len(dishes), cat_id)
    return dishes


@requires("authenticated", status_code=401)
@json_route
async def create_dish(request: Request) -> tuple[dict[str, Any], int]:
    body = await json_body(request)
    dish = await services.create_dish(
        request.user.uid,
        request.path_params["cat_id"],
        body,
        repository=repo(request),
    )
    return dish.to_dict(), 201


@requires("authenticated", status_code=401)
@json_route
async def update_dish(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    return await services.update_dish(
        request.user.uid,
        request.path_params["cat_id"],
        request.path_params["dish_id"],
        body,
        repository=repo(request),
    )


@requires("authenticated", status_code=401)
@json_route
async def delete_dish(request: Request) -> dict[str, Any]:
    dish_id = request.path_params["dish_id"]
    await services.delete_dish(
        request.user.uid,
        request.path_params["cat_id"],
        dish_id,
        repository=repo(request),
    )
    return {"success": True, "id": dish_id}


@requires("authenticated", status_code=401)
@json_route
async def toggle_favorite(request: Request) -> dict[str, bool]:
    favorite = await services.toggle_favorite(
        request.user.uid,
        request.path_params["cat_id"],
        request.path_params["dish_id"],
        repository=repo(request),
    )
    return {"favorite": favorite}


async def http_exception(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    return JSONResponse(
        {"error": exc.detail}, status_code=exc.status_code, headers=exc.headers
    )


def create_app(cfg: config.Config | None = None) -> Starlette:
    cfg = config.Config() if cfg is None else cfg
    configure_logging(cfg.log_level)

    db = Database(cfg.db_url)
    verifier = verifier_from_config(cfg)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await db.connect()
        await app.state.store.create_table()
        logger.info("Recipe book ready on %s", cfg.db_url)
        yield
        if isinstance(verifier, HttpTokenVerifier):
            await verifier.close()
        await db.disconnect()

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/api/format-recipe", format_recipe, methods=["POST"]),
            Route("/api/categories", list_categories, methods=["GET"]),
            Route("/api/categories", create_category, methods=["POST"]),
            Route("/api/categories/{cat_id}", rename_category, methods=["PUT"]),
            Route("/api/categories/{cat_id}", delete_category, methods=["DELETE"]),
            Route("/api/categories/{cat_id}/dishes", list_dishes, methods=["GET"]),
            Route("/api/categories/{cat_id}/dishes", create_dish, methods=["POST"]),
            Route(
                "/api/categories/{cat_id}/dishes/{dish_id}",
                update_dish,
                methods=["PUT"],
            ),
            Route(
                "/api/categories/{cat_id}/dishes/{dish_id}",
                delete_dish,
                methods=["DELETE"],
            ),
            Route(
                "/api/categories/{cat_id}/dishes/{dish_id}/favorite",
                toggle_favorite,
                methods=["PATCH"],
            ),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=cfg.cors_origins,
                allow_methods=["*"],
                allow_headers=["*"],
            ),
            Middleware(
                AuthenticationMiddleware,
                backend=BearerTokenBackend(verifier),
                on_error=on_auth_error,
            ),
        ],
        exception_handlers={HTTPException: http_exception},
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.templates = Environment(
        loader=FileSystemLoader(cfg.html_dir),
        autoescape=select_autoescape(),
    )
    app.state.store = KeyValueStore(db)
    app.state.repo = RecipeBookRepository(
        app.state.store, policy=MirrorPolicy(mirror=cfg.mirror_to_root)
    )
    return app


app = create_app()
