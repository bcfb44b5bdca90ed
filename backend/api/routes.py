from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.config import settings
from core.exceptions import GenerationError
from core.logger import logger
from services.script_service import UnifiedScriptService, create_script_service

router = APIRouter()

_script_service: Optional[UnifiedScriptService] = None


def get_script_service() -> UnifiedScriptService:
    """Lazily built service shared by all requests. Override in tests via dependency_overrides."""
    global _script_service
    if _script_service is None:
        _script_service = create_script_service()
    return _script_service


# Request models
class ScriptContextBody(BaseModel):
    notes: Optional[str] = None
    voiceId: Optional[str] = None
    referenceMode: Optional[str] = None


class GenerateScriptBody(BaseModel):
    """Script request. Enum values are checked by the pipeline validator, not here."""
    user_id: str = Field(..., min_length=1)
    idea: str
    duration: Union[str, int]
    type: str
    tone: str
    context: Optional[ScriptContextBody] = None

    def to_request(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"user_id", "count"}, exclude_none=True)


class VariationsBody(GenerateScriptBody):
    count: int = Field(default=settings.default_variation_count, ge=1, le=settings.max_variation_count)


# ====== SCRIPT GENERATION ENDPOINTS ======

@router.post("/scripts/generate")
async def generate_script(body: GenerateScriptBody, service: UnifiedScriptService = Depends(get_script_service)):
    logger.info(f"Script generation requested by user {body.user_id}")
    script = await service.generate_script(body.to_request(), body.user_id)
    return script.to_dict()


@router.post("/scripts/variations")
async def generate_variations(body: VariationsBody, service: UnifiedScriptService = Depends(get_script_service)):
    scripts = await service.generate_variations(body.to_request(), body.user_id, body.count)
    return {"variations": [script.to_dict() for script in scripts]}


@router.post("/scripts/options")
async def generate_options(body: GenerateScriptBody, service: UnifiedScriptService = Depends(get_script_service)):
    options = await service.generate_options(body.to_request(), body.user_id)
    if options.option_a is None and options.option_b is None:
        raise GenerationError("Both script options failed to generate")
    return {
        "optionA": options.option_a.to_dict() if options.option_a else None,
        "optionB": options.option_b.to_dict() if options.option_b else None,
    }


@router.get("/scripts/durations")
async def get_durations() -> List[Dict[str, Any]]:
    return UnifiedScriptService.get_duration_options()


@router.post("/users/{user_id}/cache/invalidate")
async def invalidate_user_cache(user_id: str, service: UnifiedScriptService = Depends(get_script_service)):
    if not user_id.strip():
        raise HTTPException(status_code=400, detail="User id is required")
    service.invalidate_user_cache(user_id)
    return {"status": "invalidated", "user_id": user_id}


@router.get("/scripts/performance")
async def get_performance(last_n: int = 100, service: UnifiedScriptService = Depends(get_script_service)):
    return service.get_performance_analysis(last_n)
