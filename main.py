from typing import Any, Dict
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from config import get_settings
from exceptions import RepositoryError
from graph.workflow import WorkflowState, build_workflow
from schemas import IngestRequest, IngestResponse
from services.repository import InMemoryRepository, load_business_codes
from utils.logging import get_logger, set_level

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    set_level(settings.LOG_LEVEL)
    codes = load_business_codes(settings.BUSINESS_CODES_FILE) if settings.BUSINESS_CODES_FILE else {}
    app.state.repository = InMemoryRepository(valid_business_codes=codes)
    app.state.workflow = build_workflow(
        repository=app.state.repository,
        user_id=settings.EDI_USER_ID,
        homeowner_package_types=settings.HOMEOWNER_PACKAGE_TYPES,
    )
    yield


app = FastAPI(title="EDI Policy Ingest", version="1.0", lifespan=lifespan)


@app.post("/policies/ingest", response_model=IngestResponse)
def ingest(request: IngestRequest, http_req: Request):
    """Run one policy and its location records through the ingestion pipeline."""
    try:
        initial_state = WorkflowState(request=request.model_dump())
        workflow = http_req.app.state.workflow
        result_state: Dict[str, Any] = workflow.invoke(initial_state)

        response = IngestResponse.model_validate(
            {key: result_state.get(key) for key in IngestResponse.model_fields}
        )
        return JSONResponse(content=response.model_dump(mode="json"))
    except RepositoryError as exc:
        log.error("repository failure", extra={"ctx": {"rec_no": request.policy.rec_no, "error": str(exc)}})
        raise HTTPException(status_code=503, detail=f"Ingestion failed: {exc}") from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Ingestion failed: {exc}") from exc


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        app="main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False
    )
