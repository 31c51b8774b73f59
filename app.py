"""Smoothie catalog HTTP API.

Single entry point for the catalog service:
- Builds the application context once per process (lifespan)
- Serves catalog queries, dataset meta and recipe detail
- Serves image suggestions backed by the durable cache

Run with: python app.py
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from smoothies.catalog.search import get_recipe_by_slug, query_recipes
from smoothies.context import AppContext, initialize_app_context
from smoothies.models.models import (
    DatasetMeta,
    ImageSuggestionRequest,
    ImageSuggestionResponse,
    QueryOptions,
    RecipeDetail,
    RecipeListResponse,
)
from smoothies.utils.config import config
from smoothies.utils.logger import logger, route_server_logs

MISSING_IMAGE_PARAMS = {"error": "Missing parameters: provide title or tags"}


def _context(request: Request) -> AppContext:
    return request.app.state.context


async def _suggest(request: Request, payload: dict):
    try:
        suggestion_request = ImageSuggestionRequest.model_validate(payload)
    except ValidationError:
        return JSONResponse(status_code=400, content=MISSING_IMAGE_PARAMS)
    return await _context(request).image_service.suggest(suggestion_request)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        context: Pre-built context (tests inject one with fake providers).
            When omitted, the lifespan builds it from the module config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.context = context or initialize_app_context(config)
        yield
        await app.state.context.aclose()
        logger.info("Smoothie catalog service stopped")

    app = FastAPI(
        title="Smoothie Catalog API",
        description="Browse, filter and illustrate a smoothie recipe dataset.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"request_id": request_id},
        )
        return response

    @app.get("/api/smoothies", response_model=RecipeListResponse)
    async def list_smoothies(request: Request):
        params = request.query_params
        options = QueryOptions(
            q=params.get("q"),
            exclude_ingredients=params.get("excludeIngredients"),
            exclude_presets=params.get("excludePresets"),
            include_ids=params.get("ids"),
            sort=params.get("sort"),
            seed=params.get("seed"),
            offset=params.get("offset"),
            limit=params.get("limit"),
        )
        catalog = await _context(request).catalog_store.get()
        return query_recipes(catalog, options)

    @app.get("/api/smoothies/meta", response_model=DatasetMeta)
    async def smoothies_meta(request: Request):
        catalog = await _context(request).catalog_store.get()
        return catalog.meta

    @app.get("/api/smoothies/{slug}", response_model=RecipeDetail)
    async def smoothie_detail(slug: str, request: Request):
        catalog = await _context(request).catalog_store.get()
        recipe = get_recipe_by_slug(catalog, slug)
        if recipe is None:
            raise HTTPException(status_code=404, detail=f"Smoothie not found: {slug}")
        return recipe

    @app.get("/api/image-suggestions", response_model=ImageSuggestionResponse)
    async def image_suggestions(request: Request):
        params = request.query_params
        return await _suggest(
            request,
            {
                "title": params.get("title"),
                "tags": params.get("tags"),
                "limit": params.get("limit"),
                "refresh": params.get("refresh"),
            },
        )

    @app.post("/api/image-suggestions", response_model=ImageSuggestionResponse)
    async def image_suggestions_post(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return await _suggest(
            request,
            {
                "title": body.get("title"),
                "tags": body.get("tags") if isinstance(body.get("tags"), list) else [],
                "limit": body.get("limit"),
                "refresh": body.get("refresh"),
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Smoothie catalog service on port {config.PORT}")
    logger.info(f"Dataset: {config.DATASET_PATH}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    route_server_logs(logger)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT, log_config=None)
