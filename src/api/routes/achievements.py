"""
Achievement API endpoints.

- GET with ?type=all returns the static catalog
- GET with ?user_id=... returns earned achievements, progress towards the
  rest, and the member's achievement points
- POST /grant awards an achievement, once per member
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.gym.catalog import ACHIEVEMENT_CATALOG, AchievementDefinition, UserAchievement
from ...core.gym.progress import AchievementSummary
from ..dependencies import (
    AchievementServiceDep,
    AuthenticatedUser,
    IsAdmin,
    Today,
)

logger = logging.getLogger(__name__)

router = APIRouter()

CATALOG_QUERY_TYPES = {"all", "types"}


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class AchievementItem(BaseModel):
    """A catalog entry."""
    id: str
    name: str
    description: str
    icon: str
    points: int
    type: str = Field(description="Achievement category")

    @classmethod
    def from_definition(cls, definition: AchievementDefinition) -> "AchievementItem":
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            icon=definition.icon,
            points=definition.points,
            type=definition.category.value,
        )


class EarnedAchievementItem(AchievementItem):
    earned: bool = True
    earned_at: datetime
    points_awarded: int

    @classmethod
    def from_earned(cls, achievement: UserAchievement) -> "EarnedAchievementItem":
        definition = achievement.definition
        return cls(
            **AchievementItem.from_definition(definition).model_dump(),
            earned_at=achievement.earned_at,
            points_awarded=achievement.points_awarded,
        )


class AvailableAchievementItem(AchievementItem):
    earned: bool = False
    progress: float = Field(description="Progress towards this achievement, 0-100")


class AchievementSummaryResponse(BaseModel):
    user_id: str
    earned: list[EarnedAchievementItem]
    available: list[AvailableAchievementItem]
    total_points: int

    @classmethod
    def from_summary(cls, user_id: str, summary: AchievementSummary) -> "AchievementSummaryResponse":
        return cls(
            user_id=user_id,
            earned=[EarnedAchievementItem.from_earned(a) for a in summary.earned],
            available=[
                AvailableAchievementItem(
                    **AchievementItem.from_definition(p.definition).model_dump(),
                    progress=round(p.progress, 2),
                )
                for p in summary.available
            ],
            total_points=summary.total_points,
        )


class CatalogResponse(BaseModel):
    achievements: list[AchievementItem]


class GrantAchievementRequest(BaseModel):
    """Request to award an achievement. Accepts camelCase keys too."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1, max_length=100)
    achievement_id: str = Field(alias="achievementId", min_length=1, max_length=100)
    admin_override: bool = Field(
        False,
        alias="adminOverride",
        description="Grant regardless of progress. Requires an admin key.",
    )


class GrantAchievementResponse(BaseModel):
    success: bool = True
    message: str
    achievement: EarnedAchievementItem


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=AchievementSummaryResponse | CatalogResponse,
    status_code=status.HTTP_200_OK,
    summary="Get achievements",
    description="Pass type=all for the catalog, or user_id for a member's achievements and progress.",
)
async def get_achievements(
    today: Today,
    user_id: Optional[str] = Query(None, alias="user_id", description="Member to summarise"),
    achievement_type: Optional[str] = Query(None, alias="type", description="'all' for the catalog"),
    api_key: AuthenticatedUser = None,
    service: AchievementServiceDep = None,
) -> AchievementSummaryResponse | CatalogResponse:
    if achievement_type is not None:
        if achievement_type not in CATALOG_QUERY_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="type must be one of: all, types",
            )
        return CatalogResponse(
            achievements=[
                AchievementItem.from_definition(d) for d in ACHIEVEMENT_CATALOG.values()
            ]
        )

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide user_id, or type=all for the catalog",
        )

    summary = service.get_summary(user_id, today)

    logger.info(
        "Achievement summary",
        extra={
            "user_id": user_id,
            "earned": len(summary.earned),
            "total_points": summary.total_points,
        }
    )

    return AchievementSummaryResponse.from_summary(user_id, summary)


@router.post(
    "/grant",
    response_model=GrantAchievementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant achievement",
    description="Award an achievement to a member. Overriding the progress requirement needs an admin key.",
    responses={
        403: {"description": "Override requested without admin role"},
        404: {"description": "Member or achievement not found"},
        409: {"description": "Already earned, or requirements not met"},
    },
)
async def grant_achievement(
    request: GrantAchievementRequest,
    today: Today,
    is_admin: IsAdmin,
    service: AchievementServiceDep = None,
) -> GrantAchievementResponse:
    logger.info(
        "Achievement grant requested",
        extra={
            "user_id": request.user_id,
            "achievement_id": request.achievement_id,
            "admin_override": request.admin_override,
        }
    )

    achievement = service.grant(
        user_id=request.user_id,
        achievement_id=request.achievement_id,
        today=today,
        admin_override=request.admin_override,
        is_admin=is_admin,
    )

    return GrantAchievementResponse(
        message="Achievement awarded!",
        achievement=EarnedAchievementItem.from_earned(achievement),
    )
