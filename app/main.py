from __future__ import annotations

import contextlib

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger

from utility.config import get_settings
from utility.dto import SynthesizeRequest, TranslateRequest, TranslateResponse
from utility.errors import GatewayError
from utility.logging_config import configure_logging
from utility.retry import call_with_retry
from utility.translation_gateway import TranslationGateway
from utility.tts_manager import TTSManager

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
}

AUDIO_HEADERS = {
    **NO_CACHE_HEADERS,
    "Pragma": "no-cache",
    "Expires": "0",
}


# -----------------------------
# Startup
# -----------------------------
@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    # SHARED (stateless) collaborators; tests may swap them on app.state
    app.state.settings = settings
    app.state.translation_gateway = TranslationGateway()
    app.state.tts_manager = TTSManager()

    logger.info(f"Server started with {settings!r}")
    yield
    logger.info("Server shutting down")


# -----------------------------
# FastAPI app
# -----------------------------
app = FastAPI(title="Dialect Translator", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Helpers
# -----------------------------
def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=NO_CACHE_HEADERS)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    logger.error(f"{request.url.path} -> {exc!r}")
    return error_response(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "malformed body")
    message = f"Invalid request: {location}: {detail}" if location else f"Invalid request: {detail}"
    logger.warning(f"{request.url.path} -> {message}")
    return error_response(message, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Server Error on {request.url.path}")
    return error_response("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)


# -----------------------------
# HTTP Endpoints
# -----------------------------
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/translate", responses={200: {"model": TranslateResponse}})
@app.post("/api/translate", include_in_schema=False)
async def translate(req: TranslateRequest):
    """Translate with the caller-side retry policy; errors come back as {error}."""
    settings = app.state.settings
    gateway: TranslationGateway = app.state.translation_gateway

    result = await call_with_retry(
        lambda: gateway.translate(req),
        max_attempts=settings.TRANSLATE_MAX_ATTEMPTS,
        delay=settings.TRANSLATE_RETRY_DELAY,
    )
    return JSONResponse(result, headers=NO_CACHE_HEADERS)


@app.post("/synthesize", response_class=Response)
@app.post("/api/tts", response_class=Response, include_in_schema=False)
async def synthesize(req: SynthesizeRequest):
    audio = await app.state.tts_manager.synthesize(req.text, req.language)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={**AUDIO_HEADERS, "Content-Length": str(len(audio))},
    )


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
