from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime


StreakType = Literal["session", "progress_log"]
BadgeCategory = Literal["sessions", "weight_loss", "consistency", "progress", "milestones"]


class Streak(BaseModel):
    """Consecutive-day activity run derived from a client's history.

    Recomputed on every read; only the recovery/celebration markers are stored.
    """
    id: str = Field(..., description="Stable identifier of the habit track (e.g. 'session-streak')")
    type: StreakType = Field(..., description="Activity category the streak is built from")
    currentCount: int = Field(0, ge=0, description="Length of the run ending at the most recent activity day")
    bestCount: int = Field(0, ge=0, description="Longest run ever observed in the history")
    isActive: bool = Field(False, description="Whether the streak is currently alive")
    lastActivityDate: Optional[date] = Field(None, description="Most recent qualifying day")
    startDate: Optional[date] = Field(None, description="First day of the current run")
    title: str = Field(..., description="Display title")
    description: str = Field("", description="Display description")
    icon: str = Field("🔥", description="Display icon")
    canRecover: bool = Field(False, description="Whether the one-time recovery can be used right now")
    isRecovered: bool = Field(False, description="Whether the streak is shown as active because of a recovery")


class BadgeDefinition(BaseModel):
    """Catalogue entry describing how a badge is earned."""
    category: BadgeCategory
    name: str
    description: str
    icon: str
    color: str
    requirement: str = Field(..., description="Human-readable threshold")
    statistic: str = Field(..., description="GamificationStats field compared against the threshold")
    threshold: float = Field(..., gt=0)
    nextMilestone: Optional[str] = None


class Badge(BaseModel):
    """Evaluated badge for one client."""
    id: str
    category: BadgeCategory
    name: str
    description: str
    icon: str
    color: str
    requirement: str
    threshold: float
    isUnlocked: bool = False
    progress: float = Field(0.0, ge=0, le=100, description="Percent toward the threshold (100 once unlocked)")
    achievedDate: Optional[datetime] = Field(None, description="When the badge was first unlocked")
    nextMilestone: Optional[str] = None
    instructions: str = ""


class GamificationStats(BaseModel):
    """Aggregate statistics the badge catalogue is evaluated against."""
    totalSessions: int = 0
    totalWeightLoss: float = 0.0
    totalDaysTracked: int = 0
    longestStreak: int = 0
    badgesEarned: int = 0
    currentLevel: int = 1
    morningSessions: int = 0
    eveningSessions: int = 0
    goalReached: int = Field(0, description="1 when the client's target weight has been reached")


class Achievement(BaseModel):
    """Entry in the recent achievements feed."""
    id: str
    type: Literal["streak", "badge", "milestone"]
    title: str
    description: str
    icon: str
    xpEarned: int
    achievedDate: datetime
    isNew: bool = False


class Celebration(BaseModel):
    """Milestone celebration waiting to be shown for a streak."""
    streakId: str
    count: int
    tier: str = Field(..., description="Name of the highest milestone tier reached (e.g. 'Week Warrior')")
    message: str
    xpReward: int
    icon: str
    shareText: str


class GamificationData(BaseModel):
    """Everything the client's gamification dashboard shows."""
    clientId: str
    clientName: str
    level: int
    totalXP: int
    currentStreaks: List[Streak]
    badges: List[Badge]
    recentAchievements: List[Achievement]
    stats: GamificationStats
    nextBadge: Optional[Badge] = None
    pendingCelebration: Optional[Celebration] = None


class StreaksResponse(BaseModel):
    streaks: List[Streak]
    topStreak: Optional[Streak] = None


class TopStreakResponse(BaseModel):
    """Summary widget payload; a placeholder label is used when there is no streak."""
    streak: Optional[Streak] = None
    clientId: Optional[str] = None
    title: str
    icon: str
    currentCount: int = 0


class BadgesResponse(BaseModel):
    badges: List[Badge]
    stats: GamificationStats
    nextBadge: Optional[Badge] = None


class CelebrationResponse(BaseModel):
    celebration: Optional[Celebration] = None


class CelebrationRequest(BaseModel):
    """Identifies a milestone celebration by streak and count."""
    streakId: str = Field(..., min_length=1)
    count: int = Field(..., ge=1)


class DismissCelebrationResponse(BaseModel):
    recorded: bool = Field(..., description="False when the milestone had already been celebrated")


class ShareMessage(BaseModel):
    title: str
    text: str
    url: str


class ShareResult(BaseModel):
    method: Literal["shared", "clipboard"] = Field(..., description="'clipboard' means the client should copy the text")
    title: str
    text: str
    url: str
    detail: Optional[str] = None


class RecoveryResponse(BaseModel):
    recovered: bool = Field(..., description="False when the streak was not eligible (no-op)")
    streak: Streak
