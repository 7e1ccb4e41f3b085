"""
Leveling API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from habitxp.api.deps import get_db, get_current_user_id
from habitxp.application.leveling import (
    AlreadyCompletedError,
    CompleteHabitUseCase,
    ConcurrentUpdateConflict,
    HabitNotFoundError,
)
from habitxp.application.leveling_summary import LevelingSummaryService
from habitxp.domain.leveling_curve import LevelingValidationError


router = APIRouter(prefix="/api/v1/leveling", tags=["leveling"])


# === Request/Response models ===

class CompleteRequest(BaseModel):
    habit_id: int
    amount: float | None = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError("amount must not be negative")
        return v


class BreakdownResponse(BaseModel):
    habit_xp: int
    streak: int
    mult: float
    category_gain: int
    overall_gain: int


class NewLevelsResponse(BaseModel):
    overall_leveled_up: bool
    overall_new_level: int
    category_leveled_up: bool
    category_new_level: int
    category_rank_changed: bool
    category_new_rank: str


class BarsResponse(BaseModel):
    overall_current_xp: int
    overall_needed_xp: int
    category_xp: int
    category_needed_xp: int


class CompleteResponse(BaseModel):
    success: bool
    streak_count: int
    breakdown: BreakdownResponse
    new_levels: NewLevelsResponse
    bars: BarsResponse


class OverallResponse(BaseModel):
    level: int
    current_xp: int
    needed_xp: int
    total_xp: int


class CategorySummaryResponse(BaseModel):
    category_id: int
    category_name: str
    category_color: str
    category_icon: str
    level: int
    xp: int
    rank: str
    last_7_day_completions: int


class SummaryResponse(BaseModel):
    healthy: bool
    error: str | None = None
    overall: OverallResponse
    categories: list[CategorySummaryResponse]
    today_xp_by_habit: dict[int, int]


class HealthResponse(BaseModel):
    tables_exist: bool
    error: str | None = None


# === Endpoints ===

@router.post("/complete", response_model=CompleteResponse)
def complete_habit(
    req: CompleteRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Complete a habit for today and award XP"""
    try:
        result = CompleteHabitUseCase(db).execute(
            user_id=user_id,
            habit_id=req.habit_id,
            amount=req.amount,
        )
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrentUpdateConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (AlreadyCompletedError, LevelingValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    b = result.breakdown
    overall = result.overall_transition
    category = result.category_transition
    return CompleteResponse(
        success=True,
        streak_count=result.streak_count,
        breakdown=BreakdownResponse(
            habit_xp=b.habit_xp,
            streak=b.streak,
            mult=b.mult,
            category_gain=b.category_gain,
            overall_gain=b.overall_gain,
        ),
        new_levels=NewLevelsResponse(
            overall_leveled_up=overall.leveled_up,
            overall_new_level=overall.new_level,
            category_leveled_up=category.leveled_up,
            category_new_level=category.new_level,
            category_rank_changed=category.rank_changed,
            category_new_rank=category.new_rank.value,
        ),
        bars=BarsResponse(
            overall_current_xp=result.bars.overall_current_xp,
            overall_needed_xp=result.bars.overall_needed_xp,
            category_xp=result.bars.category_xp,
            category_needed_xp=result.bars.category_needed_xp,
        ),
    )


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Overall and per-category progress of the current user"""
    return LevelingSummaryService(db).get_summary(user_id)


@router.get("/health", response_model=HealthResponse)
def leveling_health(db: Session = Depends(get_db)):
    """Whether the leveling tables are reachable"""
    return LevelingSummaryService(db).check_health()
