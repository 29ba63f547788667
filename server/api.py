"""FastAPI server exposing recommendation and enrichment endpoints."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from closet_app.app import ClosetApp
from closet_app.logging_config import configure_logging, correlation_context, get_logger, log_event
from logic.errors import ClosetError, MissingEmbeddingError, NotFoundError, ProviderError
from logic.validation import (
    BatchEnrichmentResponse,
    EnrichmentInput,
    EnrichmentResponse,
    OutfitResponse,
    RecommendationInput,
)

LOGGER = get_logger(__name__)


def _error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def create_app(closet: ClosetApp | None = None) -> FastAPI:
    """Build the ASGI app around a :class:`ClosetApp`."""

    configure_logging()
    closet_app = closet or ClosetApp()
    app = FastAPI(title="Closet Curator", version="0.1.0")
    app.state.closet = closet_app

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        with correlation_context(request.headers.get("x-correlation-id")) as correlation_id:
            response = await call_next(request)
            response.headers["x-correlation-id"] = correlation_id
            return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Invalid request", str(exc.errors()))

    @app.exception_handler(ValidationError)
    async def validation_handler(_: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(400, "Invalid request", str(exc.errors()))

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "closet-curator",
            "environment": closet_app.config.environment or "local",
        }

    @app.post("/recommendations", response_model=OutfitResponse)
    def generate_recommendations(request: RecommendationInput) -> dict:
        """Generate a complete, not previously saved outfit for a base item."""

        try:
            outfit = closet_app.generate_outfit(
                user_id=request.user_id,
                base_item_id=request.base_item_id,
                exclude_ids=request.exclude_ids,
            )
        except NotFoundError as exc:
            return _error_response(404, "Base item not found", str(exc))
        except MissingEmbeddingError as exc:
            return _error_response(409, "Base item is not ready", str(exc))
        except ClosetError as exc:
            log_event(LOGGER, logging.ERROR, "recommendation_failed", error=str(exc))
            return _error_response(500, "Failed to generate outfit", str(exc))
        return {"success": True, "outfit": [item.to_dict() for item in outfit]}

    @app.post("/embeddings/generate", response_model=EnrichmentResponse)
    def generate_embeddings(request: EnrichmentInput) -> dict:
        """Populate embeddings and palette for one item."""

        try:
            enrichment = closet_app.enrich_item(user_id=request.user_id, item_id=request.item_id)
        except NotFoundError as exc:
            return _error_response(404, "Item not found", str(exc))
        except ProviderError as exc:
            return _error_response(500, "Failed to generate embeddings", str(exc))
        except ClosetError as exc:
            log_event(LOGGER, logging.ERROR, "enrichment_failed", error=str(exc))
            return _error_response(500, "Failed to generate embeddings", str(exc))
        return {
            "success": True,
            "item_id": request.item_id,
            "has_image_embedding": bool(enrichment.v_image),
            "has_text_embedding": bool(enrichment.v_text),
            "has_palette": enrichment.palette is not None,
        }

    @app.put("/embeddings/generate", response_model=BatchEnrichmentResponse)
    def process_pending_embeddings() -> dict:
        """Enrich a batch of items that are still missing embeddings."""

        try:
            results = closet_app.enrich_pending()
        except ClosetError as exc:
            log_event(LOGGER, logging.ERROR, "batch_enrichment_failed", error=str(exc))
            return _error_response(500, str(exc))
        if not results:
            return {"message": "No items to process"}
        return {"processed": len(results), "results": results}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:create_app", factory=True, host="0.0.0.0", port=int("8080"), reload=False)
