import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from openai import OpenAI

import config
from analysis_pipeline import CallAnalyzer
from errors import CallAnalysisError, ClientInputError, InternalError
from llm_handler import FakeCompletionClient, OpenAICompletionClient
from rubric import CALL_EVALUATION_PARAMETERS, max_total_score
from stt_handler import DeepgramTranscriber, FakeTranscriber, WhisperTranscriber

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="Call Quality Analyzer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/static", StaticFiles(directory=STATIC_DIR, html=True, check_dir=False), name="static")


# --- SERVICE WIRING ---


def build_analyzer() -> CallAnalyzer:
    """
    Construct the transcription and completion services from config.
    MOCK_MODE wires the deterministic fakes; otherwise both credentials
    must be present.
    """
    if config.MOCK_MODE:
        logger.info("MOCK_MODE enabled: using fake transcription and completion services.")
        return CallAnalyzer(FakeTranscriber(), FakeCompletionClient())

    config.require_live_credentials()

    # No retries: a rate limit must surface immediately
    client = OpenAI(
        api_key=config.OPENAI_API_KEY,
        timeout=config.REQUEST_TIMEOUT_SECONDS,
        max_retries=0,
    )

    if config.TRANSCRIPTION_PROVIDER == "openai":
        transcriber = WhisperTranscriber(client, model=config.WHISPER_MODEL, language=config.DEFAULT_LANGUAGE)
    else:
        transcriber = DeepgramTranscriber(
            config.DEEPGRAM_API_KEY,
            model=config.DEEPGRAM_MODEL,
            language=config.DEFAULT_LANGUAGE,
            timeout=config.REQUEST_TIMEOUT_SECONDS,
        )

    completion = OpenAICompletionClient(client, model=config.OPENAI_MODEL)
    logger.info("Live services ready: transcription=%s completion=%s", transcriber.service, config.OPENAI_MODEL)
    return CallAnalyzer(transcriber, completion)


@lru_cache(maxsize=1)
def get_analyzer() -> CallAnalyzer:
    return build_analyzer()


# --- ERROR RESPONSES ---


@app.exception_handler(CallAnalysisError)
async def call_analysis_error_handler(request: Request, exc: CallAnalysisError):
    logger.error("%s on %s: %s (%s)", type(exc).__name__, request.url.path, exc.message, exc.details)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # A non-file audioFile field fails form validation before the endpoint runs
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return await call_analysis_error_handler(request, ClientInputError("No audio file uploaded.", details=details))


# --- ENDPOINTS ---


@app.get("/")
async def index():
    index_path = STATIC_DIR / "index.html"
    if not index_path.exists():
        return JSONResponse({"error": "Upload page not found."}, status_code=404)
    return FileResponse(index_path, media_type="text/html")


@app.get("/api/rubric")
async def rubric():
    return {
        "parameters": [p.to_dict() for p in CALL_EVALUATION_PARAMETERS],
        "maxTotalScore": max_total_score(),
    }


@app.post("/api/analyze-call")
def analyze_call(
    audioFile: Optional[UploadFile] = File(None),
    analyzer: CallAnalyzer = Depends(get_analyzer),
):
    # Plain def: the blocking SDK calls run in the threadpool
    if audioFile is None or not audioFile.filename:
        raise ClientInputError("No audio file uploaded.")

    audio_bytes = audioFile.file.read()
    try:
        result = analyzer.analyze(
            audio_bytes,
            filename=audioFile.filename,
            content_type=audioFile.content_type,
        )
    except CallAnalysisError:
        raise
    except Exception as e:
        logger.exception("Unexpected error in /api/analyze-call")
        raise InternalError("Failed to process audio.", details=str(e)) from e

    logger.info(
        "Analyzed %s: total %d/%d%s",
        audioFile.filename,
        sum(result.scores.values()),
        max_total_score(),
        " (degraded)" if result.degraded else "",
    )
    return JSONResponse(result.to_dict())


if __name__ == "__main__":
    uvicorn.run("main:app", host=config.HOST, port=config.PORT, reload=True)
