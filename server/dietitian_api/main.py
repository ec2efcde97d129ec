"""Ayurvedic Dietitian Practice API - FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import db_manager
from .routes import foods, patients, diet_charts, meal_calendar, dosha_quiz, dashboard, assistant
from .services.assistant_gateway import AssistantGatewayError

settings = get_settings()
ASSISTANT_PREFIX = assistant.router.prefix


def _first_validation_message(exc: RequestValidationError) -> str:
    error = exc.errors()[0]
    if error["type"] == "value_error":
        return error["msg"].removeprefix("Value error, ")
    if error["loc"][-1] == "type":
        return "Invalid request type"
    return error["msg"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_manager.init_schema()
    yield


app = FastAPI(
    title="Ayurvedic Dietitian Practice API",
    description="Patients, diet charts, meal calendar and AI recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(AssistantGatewayError)
async def assistant_gateway_error_handler(request: Request, exc: AssistantGatewayError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Assistant routes answer with the same {"error": ...} body as upstream failures."""
    if not request.url.path.startswith(ASSISTANT_PREFIX):
        return await request_validation_exception_handler(request, exc)
    return JSONResponse(status_code=422, content={"error": _first_validation_message(exc)})


# Include routers
app.include_router(foods.router)
app.include_router(patients.router)
app.include_router(diet_charts.router)
app.include_router(meal_calendar.router)
app.include_router(dosha_quiz.router)
app.include_router(dashboard.router)
app.include_router(assistant.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for the API."""
    return {"status": "healthy", "service": "dietitian-api"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "server.dietitian_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
