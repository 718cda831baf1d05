from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .config import settings
from .database import engine, Base
from .errors import QuoteEngineError
from .routers import quotes, estimates, auth, pdf

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("renoquote")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    description="Renovation quoting engine: estimates, quote trees and photo analysis",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuoteEngineError)
async def quote_engine_error_handler(request: Request, exc: QuoteEngineError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


# API routes
app.include_router(quotes.router, prefix="/api")
app.include_router(estimates.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(pdf.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "renoquote"}
