"""Ride Fuel API - FastAPI application entry point."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from heart_rate_listener import cleanup_heart_rate_listener, initialize_heart_rate_listener
from ride_session import InvalidTransitionError

from .config import get_settings
from .routes import events, sensors, session
from .services.session import build_ride_services

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    ride = build_ride_services()
    app.state.ride = ride

    if settings.heart_rate_listener_enabled:
        initialize_heart_rate_listener(ride.engine, {"topic_prefix": settings.topic_prefix})

    yield

    ride.engine.shutdown()
    if settings.heart_rate_listener_enabled:
        cleanup_heart_rate_listener()


app = FastAPI(
    title="Ride Fuel API",
    description="Real-time fueling guidance for a single ride",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(session.router)
app.include_router(sensors.router)
app.include_router(events.router)


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "operation": exc.operation, "status": exc.status},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for the API."""
    return {"status": "healthy", "service": "ride-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.ride_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
