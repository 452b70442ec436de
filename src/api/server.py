"""FastAPI server relaying voice commands to hosted LLM and TTS providers"""

import logging
import platform
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import fastapi
import psutil
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .audio_store import AudioClipStore
from .capabilities import StubFileReader, StubScriptRunner, StubWebSearch
from .command_analyzer import analyze_command
from .config import ServerConfig
from .llm_service import DEBUG_TEST_PROMPT, LLMService, LLMServiceError
from .logging_config import setup_logging
from .middleware import SecurityMiddleware
from .models import (
    CommandRequest, CommandResponse, ApiStatus, DebugKeyRequest, FileReadRequest,
    InputValidationError, KeyCheckRequest, KeyTestResults, ProviderTestResult,
    ScriptConfirmation, ScriptRunRequest, SearchRequest, to_json, validate_input,
)
from .rate_limiter import RateLimiter
from .tts_service import TTSService, TTSServiceError

config = ServerConfig()

# Configure logging
setup_logging(config.environment, config.log_level)
log = logging.getLogger(__name__)

for problem in config.validate():
    log.warning(f"Configuration problem: {problem}")

# Initialize services
rate_limiter = RateLimiter(
    max_requests=config.rate_limit.max_requests,
    window_seconds=config.rate_limit.window_seconds,
)
llm_service = LLMService(model=config.openai_model)
tts_service = TTSService(voice_id=config.elevenlabs_voice_id)
audio_store = AudioClipStore(ttl_minutes=config.audio_clip_ttl_minutes)
audio_store.add_cleanup_hook(rate_limiter.purge_expired)
file_reader = StubFileReader()
script_runner = StubScriptRunner()
web_search = StubWebSearch()

MISSING_OPENAI_KEY = (
    "OpenAI API key is required. Please add it in settings or set OPENAI_API_KEY environment variable."
)
INVALID_OPENAI_KEY_FORMAT = "Invalid OpenAI API key format. Key must start with 'sk-'"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    await audio_store.start_cleanup_task()
    log.info(f"SP.AI server started (environment: {config.environment}, version: {config.version})")

    yield

    # Shutdown
    log.info("Shutting down...")
    await audio_store.stop_cleanup_task()


# Create FastAPI app
app = FastAPI(
    title="SP.AI Assistant API",
    description="Voice assistant relay for hosted LLM and TTS providers",
    version=config.version,
    lifespan=lifespan,
)

app.add_middleware(
    SecurityMiddleware,
    rate_limiter=rate_limiter,
    enforce_https=config.is_production,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(message: str, status_code: int, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _read_body(request: Request, model):
    """Parse and validate a JSON body, raising InputValidationError on bad input"""
    try:
        body = await request.json()
    except ValueError as e:
        raise InputValidationError(["Request body is not valid JSON"]) from e
    return validate_input(model, body)


# Routes

@app.get("/")
async def root():
    return {"message": "SP.AI Assistant API", "docs": "/docs"}


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    try:
        process = psutil.Process()
        memory = process.memory_info()
        return {
            "status": "healthy",
            "timestamp": _now_iso(),
            "version": config.version,
            "environment": config.environment,
            "services": config.keys.status(),
            "uptime": time.time() - process.create_time(),
            "memory": {"rss": memory.rss, "vms": memory.vms},
        }
    except Exception as e:
        log.error(f"Health check failed: {e}")
        return JSONResponse(
            {"status": "unhealthy", "timestamp": _now_iso(), "error": "Health check failed"},
            status_code=500,
        )


@app.get("/api/debug")
async def debug_info():
    """Report environment flags without exposing full keys"""
    openai_key = config.keys.openai
    return {
        "timestamp": _now_iso(),
        "environment": {
            "env": config.environment,
            "hasOpenAIEnvKey": bool(openai_key),
            "openAIKeyPrefix": openai_key[:10] if openai_key else "none",
        },
        "versions": {
            "python": platform.python_version(),
            "fastapi": fastapi.__version__,
        },
    }


@app.post("/api/debug")
async def debug_test_key(request: Request):
    """Test a single OpenAI key with a minimal completion"""
    try:
        payload = await _read_body(request, DebugKeyRequest)
    except InputValidationError as e:
        return _error(str(e), 400)

    if not payload.test_key:
        return _error("No test key provided", 400)

    log.debug(f"Testing key: {payload.test_key[:10]}")

    try:
        completion = await llm_service.complete(payload.test_key, DEBUG_TEST_PROMPT, max_tokens=10)
    except LLMServiceError as e:
        cause = e.__cause__ or e
        return JSONResponse(
            {
                "success": False,
                "error": e.provider_message,
                "details": {"name": type(cause).__name__, "cause": str(cause)[:200]},
            },
            status_code=500,
        )

    return {"success": True, "response": completion.text, "usage": completion.usage}


@app.post("/api/process-command")
async def process_command(request: Request):
    """Answer a command with the LLM and, when a TTS key is available, synthesized speech"""
    try:
        payload = await _read_body(request, CommandRequest)
        command = payload.command

        log.info("Processing command", extra={"data": {"command": command[:50]}})

        # Use provided API key or fall back to environment variable
        openai_key = payload.api_keys.openai or config.keys.openai
        elevenlabs_key = payload.api_keys.elevenlabs or config.keys.elevenlabs
        serpapi_key = payload.api_keys.serpapi or config.keys.serpapi

        if not openai_key:
            log.warning("Missing OpenAI API key")
            return _error(MISSING_OPENAI_KEY, 400)

        if not openai_key.startswith("sk-"):
            return _error(INVALID_OPENAI_KEY_FORMAT, 400)

        tools_needed = analyze_command(command)
        log.debug("Tools needed", extra={"data": {"tools": tools_needed}})

        try:
            response_text = await llm_service.respond_to_command(openai_key, command, tools_needed)
        except LLMServiceError as e:
            return _error(e.user_message, 500)

        log.info("Generated response", extra={"data": {"response_length": len(response_text)}})

        audio_url = ""
        if elevenlabs_key:
            try:
                audio = await tts_service.synthesize(response_text, elevenlabs_key)
                clip_id = audio_store.add_clip(audio)
                audio_url = str(request.app.url_path_for("get_audio_clip", clip_id=clip_id))
            except TTSServiceError as e:
                # Continue without audio if speech generation fails
                log.error(f"ElevenLabs error: {e}")

        result = CommandResponse(
            response=response_text,
            audio_url=audio_url,
            tools_used=tools_needed,
            api_status=ApiStatus(
                openai=bool(openai_key),
                elevenlabs=bool(elevenlabs_key),
                serpapi=bool(serpapi_key),
            ),
        )
        return to_json(result)

    except InputValidationError as e:
        log.warning(f"Rejected command: {e}")
        return _error(str(e), 400)
    except Exception as e:
        log.error(f"Error processing command: {e}", exc_info=True)
        return _error(f"Failed to process command: {e}", 500)


@app.get("/api/audio/{clip_id}", name="get_audio_clip")
async def get_audio_clip(clip_id: str):
    """Serve synthesized speech for a processed command"""
    clip = audio_store.get_clip(clip_id)
    if not clip:
        return _error("Audio clip not found or expired", 404)
    return Response(content=clip.audio, media_type=clip.media_type)


@app.post("/api/read-file")
async def read_file(request: Request):
    """Read a file through the file reader capability"""
    try:
        payload = await _read_body(request, FileReadRequest)
    except InputValidationError as e:
        return _error(str(e), 400)

    try:
        content = await file_reader.read(payload.file_path)
    except Exception as e:
        log.error(f"File reading error: {e}")
        return _error("Failed to read file", 500)

    return to_json(content)


@app.post("/api/run-script")
async def run_script(request: Request):
    """Run a script, asking for confirmation first"""
    try:
        payload = await _read_body(request, ScriptRunRequest)
    except InputValidationError as e:
        return _error(str(e), 400)

    if not payload.confirmed:
        return to_json(ScriptConfirmation(
            message=f"Are you sure you want to run the script: {payload.script_path}?",
            script_path=payload.script_path,
        ))

    try:
        execution = await script_runner.run(payload.script_path)
    except Exception as e:
        log.error(f"Script execution error: {e}")
        return _error("Failed to execute script", 500)

    log.info(f"Executed script {payload.script_path} (exit code {execution.exit_code})")
    return to_json(execution)


@app.post("/api/search")
async def search(request: Request):
    """Search the web through the search capability"""
    try:
        payload = await _read_body(request, SearchRequest)
    except InputValidationError as e:
        return _error(str(e), 400)

    if not payload.api_key:
        return _error("SerpAPI key is required", 400)

    try:
        results = await web_search.search(payload.query, payload.api_key)
    except Exception as e:
        log.error(f"Search error: {e}")
        return _error("Search failed", 500)

    return to_json(results)


@app.post("/api/test-keys")
async def test_keys(request: Request):
    """Check each provider key and report a status per provider"""
    try:
        payload = await _read_body(request, KeyCheckRequest)
    except InputValidationError as e:
        return _error(str(e), 400)

    try:
        keys = payload.api_keys
        results = KeyTestResults()

        openai_key = keys.openai or config.keys.openai
        if openai_key:
            results.openai = ProviderTestResult(**await llm_service.check_key(openai_key))
        else:
            results.openai = ProviderTestResult(
                status="missing", message="No API key provided in settings or environment"
            )

        elevenlabs_key = keys.elevenlabs or config.keys.elevenlabs
        if elevenlabs_key:
            results.elevenlabs = ProviderTestResult(**await tts_service.check_key(elevenlabs_key))
        else:
            results.elevenlabs = ProviderTestResult(status="missing", message="No API key provided")

        # Presence check only, search is not integrated yet
        if keys.serpapi or config.keys.serpapi:
            results.serpapi = ProviderTestResult(status="success", message="SerpAPI key configured")
        else:
            results.serpapi = ProviderTestResult(status="missing", message="No API key provided")

        log.info("API key test complete", extra={"data": {
            "openai": results.openai.status,
            "elevenlabs": results.elevenlabs.status,
            "serpapi": results.serpapi.status,
        }})
        return {"results": results.model_dump()}

    except Exception as e:
        log.error(f"API key test failed: {e}")
        return _error("Failed to test API keys", 500, details=str(e))


def main():
    """Run the server"""
    import uvicorn

    log.info(f"Starting server on {config.host}:{config.port}")

    log_level = (config.log_level or "info").lower()
    if log_level == "warn":
        log_level = "warning"

    uvicorn.run(
        "src.api.server:app",
        host=config.host,
        port=config.port,
        reload=False,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
