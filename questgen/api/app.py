"""
FastAPI Application - REST API for the quest authoring tools.

Endpoints:
    GET    /api/v1/health                   Service health
    GET    /api/v1/decks                    Loaded card data
    POST   /api/v1/decks                    Replace card data (hot swap)
    POST   /api/v1/quests                   Generate a quest (full run)
    POST   /api/v1/quests/steps/{stage}     Run one pipeline step
    GET    /api/v1/quests/current           Current or last run
    GET    /api/v1/quests/logs              Run log of the current or last run
    POST   /api/v1/validate                 Run the validator

Step-through Flow:
    1. POST /quests/steps/draw_verb starts a new run
    2. POST /quests/steps/draw_target, draw_location, draw_twist
    3. POST /quests/steps/draw_reward_and_failure completes the run
    Calling a step out of order returns STAGE_OUT_OF_ORDER.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Any, Optional
import os

# Environment configuration
QUESTGEN_ENV = os.getenv("QUESTGEN_ENV", "development")
QUESTGEN_CARDS_PATH = os.getenv("QUESTGEN_CARDS_PATH", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional QuestService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Body
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import QuestService, ServiceError
    from .schemas import (
        # Request models
        GenerateQuestRequest,
        StepRequest,
        ValidateRequest,
        # Response models
        QuestResponse,
        StepResponse,
        LogsResponse,
        DecksResponse,
        ValidationReportResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Questgen API",
        description="""
Quest Generation Engine - constrained random draws over tagged card decks.

## Quest Pipeline

Verb → Target → Location → Twist → Reward/Failure. Each stage draws with up
to three tag-mismatch rejections before accepting the next card (fallback).

## Error Codes

| Code | Description |
|------|-------------|
| `NO_DECKS_LOADED` | No card data has been loaded |
| `INVALID_CARD_DATA` | Card data failed validation |
| `GENERATION_ABORTED` | Verb, Target, Location or Twist deck was empty |
| `STAGE_OUT_OF_ORDER` | Step requested before its prerequisite |
| `UNKNOWN_STAGE` | Not a drawing stage |
| `VERB_NOT_FOUND` | Requested verb is not in the verb deck |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    quest_service = service or QuestService(environment=QUESTGEN_ENV)
    if service is None and QUESTGEN_CARDS_PATH:
        quest_service.load_file(QUESTGEN_CARDS_PATH)

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.NO_DECKS_LOADED: 409,
        ErrorCode.INVALID_CARD_DATA: 400,
        ErrorCode.GENERATION_ABORTED: 422,
        ErrorCode.STAGE_OUT_OF_ORDER: 409,
        ErrorCode.UNKNOWN_STAGE: 404,
        ErrorCode.VERB_NOT_FOUND: 404,
    }

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request, exc: ServiceError):
        return make_error_response(
            exc.error_code,
            exc.message,
            status_code=status_codes.get(exc.error_code, 400),
            details=exc.details,
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Service health",
    )
    async def health() -> HealthResponse:
        return quest_service.health()

    # =========================================================================
    # Card Data Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/decks",
        response_model=DecksResponse,
        tags=["Decks"],
        summary="Describe the loaded card data",
    )
    async def get_decks() -> DecksResponse:
        return quest_service.deck_info()

    @app.post(
        "/api/v1/decks",
        response_model=DecksResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid card data"}},
        tags=["Decks"],
        summary="Replace the card data",
    )
    async def load_decks(data: dict[str, Any] = Body(..., description="Deck name -> list of card records")) -> DecksResponse:
        """
        Replace every deck with the submitted card records.

        The body uses the authoring field names (`CardName`, `TypeTags`,
        `Instructions`, ...). The current run is discarded.
        """
        return quest_service.load_decks(data)

    # =========================================================================
    # Quest Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/quests",
        response_model=QuestResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Verb not found"},
            409: {"model": ErrorResponse, "description": "No card data loaded"},
            422: {"model": ErrorResponse, "description": "Generation aborted"},
        },
        tags=["Quests"],
        summary="Generate a quest",
    )
    async def generate_quest(request: Optional[GenerateQuestRequest] = Body(default=None)) -> QuestResponse:
        """Run Verb → Target → Location → Twist → Reward/Failure once."""
        return quest_service.generate(request or GenerateQuestRequest())

    @app.post(
        "/api/v1/quests/steps/{stage}",
        response_model=StepResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Unknown stage"},
            409: {"model": ErrorResponse, "description": "Stage out of order"},
        },
        tags=["Quests"],
        summary="Run one pipeline step",
    )
    async def run_step(stage: str, request: Optional[StepRequest] = Body(default=None)) -> StepResponse:
        """
        Run a single step for the step-through debugger.

        `draw_verb` starts a new run; the other steps continue it.
        """
        return quest_service.step(stage, request)

    @app.get(
        "/api/v1/quests/current",
        response_model=QuestResponse,
        tags=["Quests"],
        summary="Get the current or last run",
    )
    async def current_quest() -> QuestResponse:
        return quest_service.current_quest()

    @app.get(
        "/api/v1/quests/logs",
        response_model=LogsResponse,
        tags=["Quests"],
        summary="Get the run log",
    )
    async def quest_logs() -> LogsResponse:
        return quest_service.logs()

    # =========================================================================
    # Validator Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/validate",
        response_model=ValidationReportResponse,
        responses={409: {"model": ErrorResponse, "description": "No card data loaded"}},
        tags=["Validator"],
        summary="Run the validator",
    )
    async def validate(request: Optional[ValidateRequest] = Body(default=None)) -> ValidationReportResponse:
        """Generate many quests over fresh snapshots and aggregate statistics."""
        return quest_service.validate(request or ValidateRequest())

    return app


# For running directly: uvicorn questgen.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
