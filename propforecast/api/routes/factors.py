"""
Factor API endpoints.

Lets a scenario-authoring client check factor configs before saving them
and discover the config shape of each factor type.
"""

from typing import Any, Dict

from fastapi import APIRouter

from propforecast.api.schemas import FactorValidationRequest, FactorValidationResponse
from propforecast.core.models import FACTOR_CONFIG_MODELS, factor_config_errors


router = APIRouter()


@router.get("/types")
def list_factor_types() -> Dict[str, Any]:
    """JSON schema of the config for every factor type."""
    return {
        factor_type.value: model.model_json_schema(by_alias=True)
        for factor_type, model in FACTOR_CONFIG_MODELS.items()
    }


@router.post("/validate", response_model=FactorValidationResponse)
def validate_factor(request: FactorValidationRequest):
    """
    Structurally validate a factor config.

    Always answers 200; an invalid config is reported with ``valid: false``
    and the list of problems.
    """
    errors = factor_config_errors(request.factor_type, request.config)
    return FactorValidationResponse(
        factor_type=request.factor_type,
        valid=not errors,
        errors=errors,
    )
