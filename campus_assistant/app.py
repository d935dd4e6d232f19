"""
Campus Assistant Microservice - FastAPI Application

Provides HTTP REST API for campus query resolution (Malayalam, Manglish and
English) with per-session conversation history in Redis.

Main Entry Point:
    POST /api/v1/resolve - Resolve a query through the tiered resolver
"""

import os
import time
import uuid
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from .config import AssistantConfig
from .history import ConversationHistory, connect_redis
from .humanizer import ResponseHumanizer
from .knowledge_base import KnowledgeBaseError, load_knowledge_base
from .models import AnswerSource, Language, Message, ResolvedAnswer
from .resolver import QueryResolver

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "LBS Campus Assistant Service"
SERVICE_VERSION = "1.0.0"


# ============================================================================
# Request Metrics
# ============================================================================

class ResolutionStats:
    """Per-source counters and running averages for resolved queries"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.total_requests = 0
        self.source_counts = Counter()
        self.language_counts = Counter()
        self._confidence_sum = 0.0
        self._response_time_sum = 0.0

    def record(self, answer: ResolvedAnswer, language: Language, response_time: float) -> None:
        self.total_requests += 1
        self.source_counts[answer.source.value] += 1
        self.language_counts[language.value] += 1
        self._confidence_sum += answer.confidence
        self._response_time_sum += response_time

    def get_performance_stats(self) -> Dict[str, Any]:
        total = self.total_requests
        answered = total - self.source_counts[AnswerSource.FALLBACK.value]
        return {
            "total_requests": total,
            "source_counts": {source.value: self.source_counts[source.value] for source in AnswerSource},
            "language_counts": {language.value: self.language_counts[language.value] for language in Language},
            "answered_percentage": (answered / total * 100) if total else 0.0,
            "average_confidence": (self._confidence_sum / total) if total else 0.0,
            "average_response_time_ms": (self._response_time_sum / total * 1000) if total else 0.0,
        }


# Global state
config: Optional[AssistantConfig] = None
resolver: Optional[QueryResolver] = None
history: Optional[ConversationHistory] = None
stats = ResolutionStats()


# ============================================================================
# Pydantic Models
# ============================================================================

class ResolveRequest(BaseModel):
    """Request model for query resolution"""
    text: str = Field(..., min_length=1, description="User query in English, Malayalam or Manglish")
    language: Optional[str] = Field(None, description="Reply language (en, ml, manglish); detected when omitted")
    session_id: Optional[str] = Field(None, description="Conversation session; a new one is created when omitted")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "library evide aanu?",
                "session_id": "3f1c2a9e0b7d4c1e"
            }
        }


class ResolveResponse(BaseModel):
    """Response model for query resolution"""
    content: str = Field(..., description="Answer text")
    category: str = Field(..., description="Topic of the answer")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Resolver confidence")
    source: str = Field(..., description="Tier used: qa_database, location, category, faq, greeting, fallback")
    language: str = Field(..., description="Language of the reply")
    detected_language: str = Field(..., description="Language detected in the query")
    session_id: str = Field(..., description="Conversation session")
    is_first_message: bool = Field(..., description="True for the first reply of the session")
    response_time: float = Field(..., ge=0.0, description="Resolution time in seconds")

    class Config:
        json_schema_extra = {
            "example": {
                "content": "Central Library is located on campus. ...\n\nGoogle Maps: https://maps.app.goo.gl/uNePErUh3hs4kUWP9",
                "category": "location",
                "confidence": 0.9,
                "source": "location",
                "language": "manglish",
                "detected_language": "manglish",
                "session_id": "3f1c2a9e0b7d4c1e",
                "is_first_message": True,
                "response_time": 0.004
            }
        }


class LanguageRequest(BaseModel):
    """Request model for language detection"""
    text: str = Field(..., min_length=1, description="Text to classify")


class LanguageResponse(BaseModel):
    language: str = Field(..., description="en, ml or manglish")


class NavigateRequest(BaseModel):
    """Request model for walking directions between two campus places"""
    from_location: str = Field(..., alias="from", min_length=1, description="Starting point")
    to_location: str = Field(..., alias="to", min_length=1, description="Destination")
    language: Optional[str] = Field(None, description="Language of the steps (default: en)")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"from": "Main Gate", "to": "Library", "language": "manglish"}
        }


class NavigateResponse(BaseModel):
    """Walking directions for a stored route"""
    from_location: str = Field(..., alias="from", description="Route start as stored")
    to_location: str = Field(..., alias="to", description="Route end as stored")
    steps: List[str] = Field(..., description="Ordered walking steps")
    directions: str = Field(..., description="Steps joined into one text")
    language: str

    class Config:
        populate_by_name = True


class HealthResponse(BaseModel):
    """Health check response

    Status values:
        - healthy: All components operational
        - degraded: Service functional but Redis history unavailable (in-memory fallback)
        - unhealthy: Resolver not initialized
    """
    status: str  # One of: healthy, degraded, unhealthy
    resolver: str
    history_backend: str
    knowledge_base_version: Optional[str]
    config: Dict[str, Any]


class MetricsResponse(BaseModel):
    """Resolution metrics response"""
    total_requests: int
    source_counts: Dict[str, int] = Field(..., description="Answers per resolver tier")
    language_counts: Dict[str, int] = Field(..., description="Replies per language")
    answered_percentage: float = Field(..., description="Percentage of queries not answered by the fallback")
    average_confidence: float = Field(..., description="Average resolver confidence")
    average_response_time_ms: float = Field(..., description="Average resolution latency")
    history_backend: str


class ReloadResponse(BaseModel):
    """Knowledge base reload response"""
    message: str
    version: str
    tables: Dict[str, Any]


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage service lifecycle (startup/shutdown)
    """
    global config, resolver, history

    logger.info("🚀 Starting Campus Assistant service...")

    # Load configuration
    try:
        config = AssistantConfig.from_env()
        logger.info("✅ Configuration loaded")
    except Exception as e:
        logger.error(f"❌ Failed to load configuration: {e}")
        raise

    # Load knowledge base and build the resolver
    try:
        knowledge_base = load_knowledge_base(config.knowledge_base_path)
        humanizer = ResponseHumanizer(knowledge_base.phrases, seed=config.humanizer_seed)
        resolver = QueryResolver(
            knowledge_base,
            humanizer=humanizer,
            qa_confidence_threshold=config.qa_confidence_threshold,
            faq_confidence_threshold=config.faq_confidence_threshold,
            log_resolutions=config.log_resolutions,
        )
        logger.info("✅ Query resolver initialized")
    except KnowledgeBaseError as e:
        logger.error(f"❌ Failed to load knowledge base: {e}")
        raise

    # Conversation history (Redis with in-memory fallback)
    redis_client = None
    if config.history_backend == "redis":
        redis_client = await connect_redis(config.redis_url)
    history = ConversationHistory(
        max_messages=config.history_max_messages,
        redis_client=redis_client,
        ttl_seconds=config.history_ttl_seconds,
        max_sessions=config.history_max_sessions,
    )
    logger.info(f"✅ Conversation history ready (backend={history.backend})")

    stats.reset()
    logger.info("✅ Campus Assistant service ready")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Campus Assistant service...")

    if history:
        await history.close()
        logger.info("✅ History store closed")

    resolver = None
    history = None
    logger.info("✅ Service stopped")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=SERVICE_NAME,
    description="Tiered campus query resolution: Greeting → Q&A → Location → Category → FAQ → Fallback",
    version=SERVICE_VERSION,
    lifespan=lifespan
)


def _require_resolver() -> QueryResolver:
    if not resolver or not history:
        raise HTTPException(status_code=503, detail="Resolver not initialized")
    return resolver


def _request_language(value: Optional[str]) -> Optional[Language]:
    """Language named by a request; unknown codes map to the configured default."""
    if value is None:
        return None
    default = config.default_language if config else Language.EN
    return Language.coerce(value, default=default)


# ============================================================================
# API Endpoints
# ============================================================================

@app.post("/api/v1/resolve", response_model=ResolveResponse)
async def resolve_endpoint(request: ResolveRequest):
    """
    Resolve a campus query.

    Process:
        1. Detect the query language (reply language unless one is given)
        2. Check whether this is the first message of the session
        3. Run the tiered resolver and humanize the answer
        4. Append the query and the answer to the session history

    Returns:
        Answer with its tier, confidence, languages and timing
    """
    active_resolver = _require_resolver()
    start_time = time.time()

    detected_language = active_resolver.classify_language(request.text)
    reply_language = _request_language(request.language) or detected_language
    session_id = request.session_id or uuid.uuid4().hex

    is_first_message = await history.is_first_message(session_id)
    answer = active_resolver.resolve(request.text, reply_language, is_first_message)

    await history.append(session_id, Message(role="user", content=request.text, language=detected_language))
    await history.append(session_id, Message(role="assistant", content=answer.content, language=reply_language))

    response_time = time.time() - start_time
    stats.record(answer, reply_language, response_time)

    return ResolveResponse(
        **answer.to_dict(),
        language=reply_language.value,
        detected_language=detected_language.value,
        session_id=session_id,
        is_first_message=is_first_message,
        response_time=response_time,
    )


@app.post("/api/v1/language", response_model=LanguageResponse)
async def language_endpoint(request: LanguageRequest):
    """Detect whether text is English, Malayalam script or Manglish."""
    active_resolver = _require_resolver()
    return LanguageResponse(language=active_resolver.classify_language(request.text).value)


@app.post("/api/v1/navigate", response_model=NavigateResponse)
async def navigate_endpoint(request: NavigateRequest):
    """
    Walking directions between two campus places.

    Endpoints are matched case-insensitively by substring against the stored
    routes; routes are directed.

    Returns:
        Route steps and the joined directions text (404 when no route matches)
    """
    active_resolver = _require_resolver()
    language = _request_language(request.language) or Language.EN

    route = active_resolver.find_navigation_route(request.from_location, request.to_location, language)
    if route is None:
        raise HTTPException(
            status_code=404,
            detail=f"No route from '{request.from_location}' to '{request.to_location}'"
        )

    return NavigateResponse(
        **route.to_dict(),
        directions=". ".join(route.steps) + ".",
        language=language.value,
    )


@app.get("/api/v1/locations")
async def locations_endpoint():
    """Campus directory grouped by location category."""
    active_resolver = _require_resolver()
    grouped = active_resolver.directory.locations_by_category()
    return {
        "categories": {
            category: [location.to_dict() for location in locations]
            for category, locations in grouped.items()
        },
        "total": len(active_resolver.directory.locations),
    }


@app.get("/api/v1/routes")
async def routes_endpoint():
    """All stored directed routes."""
    active_resolver = _require_resolver()
    routes = active_resolver.directory.all_routes()
    return {"routes": routes, "total": len(routes)}


@app.get("/api/v1/history/{session_id}")
async def get_history(session_id: str, limit: Optional[int] = Query(None, ge=1)):
    """Recent messages of a session, oldest first."""
    _require_resolver()
    messages = await history.recent(session_id, limit)
    return {
        "session_id": session_id,
        "messages": [message.to_dict() for message in messages],
        "count": len(messages),
        "backend": history.backend,
    }


@app.delete("/api/v1/history/{session_id}")
async def clear_history(session_id: str):
    """Forget a session."""
    _require_resolver()
    await history.clear(session_id)
    logger.info(f"🧹 History cleared for session {session_id}")
    return {"session_id": session_id, "cleared": True}


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Checks:
        - Resolver initialization status
        - History backend (Redis or in-memory fallback)
        - Knowledge base version
        - Configuration summary

    Returns:
        Health status for all components
    """
    resolver_status = "initialized" if resolver else "not_initialized"
    history_backend = history.backend if history else "unavailable"

    config_summary = {}
    if config:
        config_summary = {
            "knowledge_base_path": config.knowledge_base_path,
            "qa_confidence_threshold": config.qa_confidence_threshold,
            "faq_confidence_threshold": config.faq_confidence_threshold,
            "default_language": config.default_language.value,
            "history_backend": config.history_backend,
            "history_max_messages": config.history_max_messages,
            "history_max_sessions": config.history_max_sessions,
        }

    # Determine overall health status
    if resolver_status != "initialized" or not history:
        overall_status = "unhealthy"  # Core functionality broken
    elif config and config.history_backend == "redis" and history_backend != "redis":
        overall_status = "degraded"  # Redis unavailable - history kept in memory
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        resolver=resolver_status,
        history_backend=history_backend,
        knowledge_base_version=resolver.knowledge_base.version if resolver else None,
        config=config_summary,
    )


@app.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    """
    Get resolution metrics.

    Metrics:
        - Total resolved queries
        - Answers per tier and per language
        - Average confidence and latency

    Returns:
        Performance statistics
    """
    _require_resolver()
    return MetricsResponse(**stats.get_performance_stats(), history_backend=history.backend)


@app.post("/admin/reload", response_model=ReloadResponse)
async def reload_knowledge_base():
    """
    Reload the knowledge tables from disk.

    The new tables replace the old ones in a single swap; on a load failure
    the previous tables stay in service.

    Returns:
        Version and table sizes of the loaded knowledge base
    """
    active_resolver = _require_resolver()

    try:
        knowledge_base = load_knowledge_base(config.knowledge_base_path)
    except KnowledgeBaseError as e:
        logger.error(f"❌ Knowledge base reload failed, keeping version {active_resolver.knowledge_base.version}: {e}")
        raise HTTPException(status_code=500, detail=f"Reload failed: {str(e)}")

    active_resolver.swap_knowledge_base(knowledge_base)
    return ReloadResponse(
        message="Knowledge base reloaded",
        version=knowledge_base.version,
        tables=knowledge_base.summary(),
    )


# ============================================================================
# Root Endpoint
# ============================================================================

@app.get("/")
async def root():
    """
    Service information endpoint
    """
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "architecture": "Tiered (Greeting → Q&A → Location → Category → FAQ → Fallback)",
        "languages": [language.value for language in Language],
        "status": "operational",
        "endpoints": {
            "resolve": "POST /api/v1/resolve",
            "language": "POST /api/v1/language",
            "navigate": "POST /api/v1/navigate",
            "locations": "GET /api/v1/locations",
            "routes": "GET /api/v1/routes",
            "history": "GET|DELETE /api/v1/history/{session_id}",
            "health": "GET /health",
            "metrics": "GET /metrics",
            "reload": "POST /admin/reload"
        }
    }


if __name__ == "__main__":
    # Local development only
    import uvicorn
    port = int(os.getenv("PORT", "8010"))
    workers = int(os.getenv("WORKERS", "1"))

    uvicorn.run(
        "campus_assistant.app:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
        log_level="info"
    )
