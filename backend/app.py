# FastAPI gateway for the game store assistant
# Proxies chat to the model runtime and makes sure game/price questions are answered from the catalog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from gateway.config import (
    ALLOWED_ORIGINS,
    APP_VERSION,
    CATALOG_SERVICE_URL,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    PORT,
)
from gateway.errors import ClientInputError
from gateway.llm import OllamaClient
from gateway.logger import get_logger
from gateway.models import ChatRequest, ChatResponse
from gateway.orchestrator import ChatOrchestrator
from gateway.tools import CatalogClient, CatalogSearch

log = get_logger("app")

# app

app = FastAPI(title="AI Gateway API", version=APP_VERSION)

# CORS setup for local development with a browser frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Built once at startup and shared read-only by all requests
ORCHESTRATOR: ChatOrchestrator | None = None


@app.on_event("startup")
def startup():
    global ORCHESTRATOR
    ORCHESTRATOR = ChatOrchestrator(
        llm=OllamaClient(host=OLLAMA_HOST, model=OLLAMA_MODEL),
        search=CatalogSearch(CatalogClient(base_url=CATALOG_SERVICE_URL)),
    )
    log.info("Using Ollama: %s model=%s", OLLAMA_HOST, OLLAMA_MODEL)
    log.info("Catalog service: %s", CATALOG_SERVICE_URL)


@app.on_event("shutdown")
def shutdown():
    if ORCHESTRATOR is not None:
        ORCHESTRATOR.llm.close()
        ORCHESTRATOR.search.catalog.close()


@app.get("/health")
def health():
    return {"status": "ok", "model": OLLAMA_MODEL, "version": APP_VERSION}


@app.get("/version")
def version():
    return {"version": APP_VERSION}


@app.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest):
    # Sync on purpose: FastAPI runs it in the threadpool and each backend call blocks until done
    if ORCHESTRATOR is None:
        raise HTTPException(status_code=500, detail="Gateway not ready")
    try:
        return ORCHESTRATOR.run(req.messages)
    except ClientInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        # Keep error payload simple for clients
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
