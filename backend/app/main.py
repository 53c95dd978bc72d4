from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from app.api.gamification import router as gamification_router

app = FastAPI(
    title="FitClient Gamification API",
    description="Streaks, milestone celebrations and badges for personal trainers' clients",
    version="1.0.0",
)

# Configure CORS for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gamification_router, prefix="/api")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.get(
    "/health",
    tags=["health"],
    summary="Health check endpoint",
    description="Returns the health status of the API",
)
def health_check():
    """Basic health check endpoint to verify the API is running.

    Returns:
        dict: Health status information
    """
    return {
        "status": "healthy",
        "service": "FitClient Gamification API",
    }


@app.get("/")
def root():
    return {"status": "ok", "service": "FitClient gamification backend"}
