from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.domain.entities.usage import UsageEntity
from hotspot_pages.domain.services.quota_policy import classify, evaluate
from hotspot_pages.infrastructure.api.dependencies import (
    get_current_user,
    get_profile_repo,
    get_usage_refresher,
)
from hotspot_pages.infrastructure.database.repositories.profile_repository import ProfileRepository

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        400: {"description": "Bad Request - Invalid request data"},
    },
)


class ValidateTokenResponse(BaseModel):
    """Response model for token validation."""
    user_id: str = Field(..., description="Unique identifier of the authenticated user")
    email: str | None = Field(None, description="Email address of the authenticated user", examples=["user@example.com"])


@router.post(
    "/validate",
    response_model=ValidateTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Validate Authentication Token",
    description="""
    Validate the provided access token and ensure the user profile exists.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="User information confirming valid authentication",
)
def validate_token(
    user=Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Validate access token and ensure user profile exists."""
    prof = profiles.upsert(user.id, user.email)
    return {"user_id": prof.id, "email": prof.email}


class UsageResponse(BaseModel):
    """Cached usage counters; zeros when nothing has been recorded yet."""
    total_hotspots: int = Field(0, description="Hotspots across pages the user owns", ge=0)
    total_pages: int = Field(0, description="Pages the user owns", ge=0)
    last_updated: datetime | None = Field(None, description="When the counters were last recomputed")

    @classmethod
    def from_entity(cls, entity: UsageEntity) -> "UsageResponse":
        return cls(
            total_hotspots=entity.total_hotspots,
            total_pages=entity.total_pages,
            last_updated=entity.last_updated,
        )


class UserProfileResponse(BaseModel):
    """Response model for user profile information."""
    id: str = Field(..., description="Unique identifier of the user")
    email: str | None = Field(None, description="Email address of the user", examples=["user@example.com"])
    plan_type: str = Field("free", description="Subscription plan", pattern="^(free|pro)$")
    subscription_status: str | None = Field(None, description="Billing status reported for the subscription")
    created_at: datetime | None = Field(None, description="ISO timestamp when the user profile was created")
    usage: UsageResponse = Field(default_factory=UsageResponse, description="Cached usage counters")
    remaining_hotspots: int | None = Field(None, description="Hotspots left on the free plan; null when unlimited")


@router.get(
    "/me",
    response_model=UserProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Current User Profile",
    description="""
    Profile, plan and cached usage of the signed-in user.

    Clients use `remaining_hotspots` to skip a doomed create request; the
    server re-checks the quota on every create regardless.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Complete user profile information",
)
def get_me(
    user=Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
    usage: RefreshUsageUseCase = Depends(get_usage_refresher),
):
    """Get current user's profile, plan and usage."""
    prof = profiles.upsert(user.id, user.email)
    counters = usage.current(user.id)
    decision = evaluate(classify(prof.id, prof.plan_type), counters.total_hotspots)
    return UserProfileResponse(
        id=prof.id,
        email=prof.email,
        plan_type=prof.plan_type,
        subscription_status=prof.subscription_status,
        created_at=prof.created_at,
        usage=UsageResponse.from_entity(counters),
        remaining_hotspots=decision.remaining,
    )


@router.post(
    "/usage/refresh",
    response_model=UsageResponse,
    summary="Recount Usage",
    description="""
    Recompute the cached usage counters from the stored pages and hotspots.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Freshly counted usage",
)
def refresh_usage(
    user=Depends(get_current_user),
    usage: RefreshUsageUseCase = Depends(get_usage_refresher),
):
    """Recount the current user's usage."""
    return UsageResponse.from_entity(usage.execute(user.id))
