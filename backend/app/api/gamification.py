from typing import Dict, Any
from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import get_current_user
from app.auth.firebase import get_firestore_db
from app.models.gamification import (
    BadgesResponse,
    CelebrationRequest,
    CelebrationResponse,
    DismissCelebrationResponse,
    GamificationData,
    RecoveryResponse,
    ShareResult,
    StreaksResponse,
    TopStreakResponse,
)
from app.services.flag_store import FirestoreFlagStore
from app.services.gamification_service import (
    build_client_streaks,
    build_gamification_data,
    load_client,
    load_client_records,
    load_clients,
    load_records_by_client,
    local_today,
)
from app.services.milestone_service import (
    MILESTONES,
    build_celebration,
    dismiss_celebration,
    pending_celebration,
)
from app.services.recovery_service import recover_streak
from app.services.share_service import build_share_message, share_celebration
from app.services.streak_service import NO_STREAK_ICON, NO_STREAK_TITLE, select_top_streak

router = APIRouter(
    prefix="/gamification",
    tags=["gamification"],
)

UNAUTHORIZED_RESPONSE = {
    401: {
        "description": "Unauthorized - Invalid or missing authentication token",
    },
}
CLIENT_NOT_FOUND_RESPONSE = {
    404: {
        "description": "Client not found for this trainer",
    },
}


def _require_client(db, uid: str, client_id: str):
    client = load_client(db, uid, client_id)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found"
        )
    return client


def _client_context(uid: str, client_id: str):
    """Load everything a per-client endpoint needs: client, records and flags."""
    db = get_firestore_db()
    client = _require_client(db, uid, client_id)
    sessions, progress_entries = load_client_records(db, uid, client_id)
    flags = FirestoreFlagStore(db, uid, client_id)
    return client, sessions, progress_entries, flags


def _require_milestone(count: int) -> None:
    if count not in MILESTONES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{count} is not a streak milestone"
        )


@router.get(
    "/clients/{client_id}",
    response_model=GamificationData,
    summary="Get client gamification data",
    description="Returns streaks, badges, level, XP, recent achievements and any pending milestone celebration for a client.",
    responses={**UNAUTHORIZED_RESPONSE, **CLIENT_NOT_FOUND_RESPONSE},
)
def get_client_gamification(
    client_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> GamificationData:
    """Get the full gamification dashboard for one of the trainer's clients.

    Everything is derived from the client's sessions and progress entries on
    each request. Newly unlocked badges are recorded so they stay unlocked.

    Args:
        client_id: Client document ID
        current_user: The authenticated trainer (injected via dependency)

    Returns:
        GamificationData: Streaks, badges, stats, level and achievements
    """
    try:
        uid = current_user["uid"]
        client, sessions, progress_entries, flags = _client_context(uid, client_id)
        data = build_gamification_data(client, sessions, progress_entries, flags)

        print(f"[GAMIFICATION] Client {client_id}: level={data.level}, badges={data.stats.badgesEarned}, streaks={len(data.currentStreaks)}")
        return data

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error building gamification data: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve gamification data"
        )


@router.get(
    "/clients/{client_id}/streaks",
    response_model=StreaksResponse,
    summary="Get client streaks",
    description="Returns the client's workout and progress-tracking streaks, including recovery eligibility.",
    responses={**UNAUTHORIZED_RESPONSE, **CLIENT_NOT_FOUND_RESPONSE},
)
def get_client_streaks(
    client_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> StreaksResponse:
    try:
        uid = current_user["uid"]
        _, sessions, progress_entries, flags = _client_context(uid, client_id)
        streaks = build_client_streaks(sessions, progress_entries, flags)

        return StreaksResponse(streaks=streaks, topStreak=select_top_streak(streaks))

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error getting streaks: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve streaks"
        )


@router.get(
    "/clients/{client_id}/badges",
    response_model=BadgesResponse,
    summary="Get client badges",
    description="Returns every catalogue badge with unlock state and progress, plus the badge closest to unlocking.",
    responses={**UNAUTHORIZED_RESPONSE, **CLIENT_NOT_FOUND_RESPONSE},
)
def get_client_badges(
    client_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> BadgesResponse:
    try:
        uid = current_user["uid"]
        client, sessions, progress_entries, flags = _client_context(uid, client_id)
        data = build_gamification_data(client, sessions, progress_entries, flags)

        return BadgesResponse(badges=data.badges, stats=data.stats, nextBadge=data.nextBadge)

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error getting badges: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve badges"
        )


@router.get(
    "/clients/{client_id}/celebration",
    response_model=CelebrationResponse,
    summary="Get pending milestone celebration",
    description="Returns the streak milestone celebration that has not been shown yet, or null.",
    responses={**UNAUTHORIZED_RESPONSE, **CLIENT_NOT_FOUND_RESPONSE},
)
def get_pending_celebration(
    client_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> CelebrationResponse:
    try:
        uid = current_user["uid"]
        _, sessions, progress_entries, flags = _client_context(uid, client_id)
        streaks = build_client_streaks(sessions, progress_entries, flags)

        return CelebrationResponse(celebration=pending_celebration(streaks, flags))

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error getting celebration: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve celebration"
        )


@router.post(
    "/clients/{client_id}/celebrations/dismiss",
    response_model=DismissCelebrationResponse,
    summary="Dismiss a milestone celebration",
    description="Records a streak milestone as celebrated. Dismissing the same milestone again is a no-op.",
    responses={
        400: {
            "description": "Count is not a streak milestone",
        },
        **UNAUTHORIZED_RESPONSE,
        **CLIENT_NOT_FOUND_RESPONSE,
    },
)
def dismiss_client_celebration(
    client_id: str,
    request: CelebrationRequest,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> DismissCelebrationResponse:
    try:
        _require_milestone(request.count)
        uid = current_user["uid"]
        _, sessions, progress_entries, flags = _client_context(uid, client_id)
        streaks = build_client_streaks(sessions, progress_entries, flags)

        if not any(s.id == request.streakId for s in streaks):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Streak not found"
            )

        recorded = dismiss_celebration(request.streakId, request.count, flags)
        print(f"[GAMIFICATION] Dismissed {request.streakId}@{request.count} for client {client_id} (recorded={recorded})")
        return DismissCelebrationResponse(recorded=recorded)

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error dismissing celebration: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to dismiss celebration"
        )


@router.post(
    "/clients/{client_id}/celebrations/share",
    response_model=ShareResult,
    summary="Share a milestone celebration",
    description="Shares the milestone through the configured share target, or returns the text to copy to the clipboard.",
    responses={
        400: {
            "description": "Count is not a streak milestone",
        },
        **UNAUTHORIZED_RESPONSE,
        **CLIENT_NOT_FOUND_RESPONSE,
    },
)
def share_client_celebration(
    client_id: str,
    request: CelebrationRequest,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> ShareResult:
    try:
        _require_milestone(request.count)
        uid = current_user["uid"]
        client, sessions, progress_entries, flags = _client_context(uid, client_id)
        streaks = build_client_streaks(sessions, progress_entries, flags)

        streak = next((s for s in streaks if s.id == request.streakId), None)
        if streak is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Streak not found"
            )
        if request.count > streak.bestCount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Milestone has not been reached"
            )

        celebration = build_celebration(streak.model_copy(update={"currentCount": request.count}))
        result = share_celebration(build_share_message(celebration, client.name))
        print(f"[GAMIFICATION] Shared {request.streakId}@{request.count} for client {client_id} via {result.method}")
        return result

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error sharing celebration: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to share celebration"
        )


@router.post(
    "/clients/{client_id}/streaks/{streak_id}/recover",
    response_model=RecoveryResponse,
    summary="Recover a lapsed streak",
    description="Uses the one-time recovery for a streak that lapsed by exactly one day. Ineligible streaks are returned unchanged.",
    responses={
        404: {
            "description": "Client or streak not found",
        },
        **UNAUTHORIZED_RESPONSE,
    },
)
def recover_client_streak(
    client_id: str,
    streak_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> RecoveryResponse:
    try:
        uid = current_user["uid"]
        _, sessions, progress_entries, flags = _client_context(uid, client_id)
        today = local_today()
        streaks = build_client_streaks(sessions, progress_entries, flags, today)

        streak = next((s for s in streaks if s.id == streak_id), None)
        if streak is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Streak not found"
            )

        recovered = recover_streak(streak, flags, today)
        was_recovered = recovered is not streak
        print(f"[GAMIFICATION] Recovery for {streak_id} (client {client_id}): recovered={was_recovered}")
        return RecoveryResponse(recovered=was_recovered, streak=recovered)

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error recovering streak: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to recover streak"
        )


@router.get(
    "/streaks/top",
    response_model=TopStreakResponse,
    summary="Get top active streak",
    description="Returns the highest active streak across all of the trainer's clients, or a placeholder when there is none.",
    responses=UNAUTHORIZED_RESPONSE,
)
def get_top_streak(
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> TopStreakResponse:
    """Summary widget: best active streak across every client.

    Ties on current count go to the smallest streak id, then the smallest
    client id.
    """
    try:
        uid = current_user["uid"]
        db = get_firestore_db()
        today = local_today()
        records = load_records_by_client(db, uid)

        best = None
        for client in sorted(load_clients(db, uid), key=lambda c: c.id):
            sessions, progress_entries = records.get(client.id, ([], []))
            streaks = build_client_streaks(sessions, progress_entries, FirestoreFlagStore(db, uid, client.id), today)
            top = select_top_streak(streaks)
            if top is None:
                continue
            if best is None or (-top.currentCount, top.id) < (-best[1].currentCount, best[1].id):
                best = (client.id, top)

        if best is None:
            return TopStreakResponse(title=NO_STREAK_TITLE, icon=NO_STREAK_ICON, currentCount=0)

        client_id, streak = best
        return TopStreakResponse(
            streak=streak,
            clientId=client_id,
            title=streak.title,
            icon=streak.icon,
            currentCount=streak.currentCount,
        )

    except HTTPException:
        raise
    except Exception as e:
        print(f"[GAMIFICATION] Error getting top streak: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve top streak"
        )
