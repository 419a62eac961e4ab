import contextlib
import json
import logging
from typing import AsyncIterator

from databases import Database
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from app import config
from app.logs import configure_logging
from domain.db import create_db
from domain.models import CreateRecipeRequest, UpdateRecipeRequest
from domain.repository import RecipeNotFound, RecipesRepository


logger = logging.getLogger(__name__)


INTERNAL_ERROR_MESSAGE = (
    "Something bad happened, please try again or ask your IT guru for help."
)


TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off", ""}


def query_flag(request: Request, name: str, alias: str) -> bool:
    raw = request.query_params.get(name, request.query_params.get(alias, ""))
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise HTTPException(status_code=400, detail=f"{name} must be a boolean.")


def repository(request: Request) -> RecipesRepository:
    return request.app.state.repo


async def recipes(request: Request) -> Response:
    match request.method.lower():
        case "get" | "head":
            results = await repository(request).search(
                request.query_params.get("query", ""),
                include_ingredients=query_flag(
                    request, "includeIngredients", "include_ingredients"
                ),
                include_instructions=query_flag(
                    request, "includeInstructions", "include_instructions"
                ),
            )
            return JSONResponse([r.to_dict() for r in results])
        case "post":
            body = CreateRecipeRequest.model_validate_json(await request.body())
            recipe = await repository(request).create(body)
            return JSONResponse(recipe.to_dict())
        case _:
            raise HTTPException(status_code=405)


async def recipe_detail(request: Request) -> Response:
    id: int = request.path_params["id"]
    match request.method.lower():
        case "get" | "head":
            recipe = await repository(request).get(id)
            return JSONResponse(recipe.to_dict())
        case "put":
            body = UpdateRecipeRequest.model_validate_json(await request.body())
            recipe = await repository(request).update(id, body)
            return JSONResponse(recipe.to_dict())
        case "delete":
            await repository(request).delete(id)
            return Response(status_code=204)
        case _:
            raise HTTPException(status_code=405)


class ClientFiles(StaticFiles):
    """The built client. Unknown paths get `index.html` for client-side routing."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


async def not_found(request: Request, exc: Exception) -> Response:
    return JSONResponse({"detail": str(exc)}, status_code=404)


async def invalid_request(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, ValidationError)
    errors = json.loads(exc.json(include_url=False))
    return JSONResponse({"detail": errors}, status_code=422)


async def http_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, HTTPException)
    return JSONResponse(
        {"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers
    )


async def internal_error(request: Request, exc: Exception) -> Response:
    logger.error(
        "Unhandled error for %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse({"detail": INTERNAL_ERROR_MESSAGE}, status_code=500)


def create_app(conf: config.Config | None = None) -> Starlette:
    """Build the app. Serve with `uvicorn --factory app.app:create_app`."""
    conf = config.Config() if conf is None else conf
    configure_logging(conf.log_level)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        db = Database(conf.db_url)
        await db.connect()
        await create_db(db)
        app.state.db = db
        app.state.repo = RecipesRepository(db)
        logger.info("Connected to %s", conf.db_url)
        yield
        await db.disconnect()

    routes: list[BaseRoute] = [
        Route("/api/recipes", recipes, methods=["GET", "POST"]),
        Route(
            "/api/recipes/{id:int}", recipe_detail, methods=["GET", "PUT", "DELETE"]
        ),
    ]
    if conf.static_dir.is_dir():
        routes.append(
            Mount("/", app=ClientFiles(directory=conf.static_dir, html=True))
        )

    # Debug stays off so every error reaches `internal_error`.
    return Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=conf.cors_origins,
                allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization"],
            )
        ],
        exception_handlers={
            RecipeNotFound: not_found,
            ValidationError: invalid_request,
            HTTPException: http_error,
            Exception: internal_error,
        },
        lifespan=lifespan,
    )
