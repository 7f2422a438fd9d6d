"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from knowledge_agent.presentation.api.v1.endpoints.health import router as health_router
from knowledge_agent.presentation.api.v1.endpoints.agent import router as agent_router
from knowledge_agent.presentation.api.v1.endpoints.documents import router as documents_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(agent_router)
router.include_router(documents_router)
