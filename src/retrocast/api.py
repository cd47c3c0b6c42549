from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from retrocast import __version__
from retrocast.features.jobs.routes import router as jobs_router
from retrocast.features.matching.routes import router as matching_router
from retrocast.features.pipeline.routes import router as tasks_router
from retrocast.platform.logging_config import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="RetroCast API", version=__version__)

# Allow CORS for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(jobs_router)
app.include_router(matching_router)
app.include_router(tasks_router)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Job submissions answer 400 {message}; other routes keep FastAPI's 422."""
    if request.url.path.rstrip("/") != "/jobs":
        return await request_validation_exception_handler(request, exc)
    message = _validation_message(exc)
    logger.info("job_submission_rejected", reason=message)
    return JSONResponse(status_code=400, content={"message": message})


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


if __name__ == "__main__":
    uvicorn.run("retrocast.api:app", host="0.0.0.0", port=8000, reload=True)
