"""Rules configuration endpoints for reading and updating thresholds."""

from fastapi import APIRouter, Request

from bullion_aml.models import ComplianceConfig

router = APIRouter(prefix="/api", tags=["Rules"])


@router.get("/rules", response_model=ComplianceConfig)
async def get_rules(request: Request) -> ComplianceConfig:
    """Return the current compliance rules configuration."""
    return request.app.state.config


@router.put("/rules", response_model=ComplianceConfig)
async def update_rules(
    new_config: ComplianceConfig,
    request: Request,
) -> ComplianceConfig:
    """Update the compliance rules configuration.

    Updates both the app-level config and the engine's config reference
    so that subsequent checkouts use the new thresholds immediately.
    """
    request.app.state.config = new_config
    request.app.state.engine.config = new_config
    return new_config
