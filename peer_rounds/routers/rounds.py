"""Round and assessment endpoints.

The caller's wallet address is supplied by the upstream auth layer in the
``X-Wallet-Address`` header.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session
from peer_rounds.database.connection import get_db
from peer_rounds.models import (
    AssessmentCreate,
    AssessmentResponse,
    AssessmentUpdate,
    ReminderRequest,
    ReminderResponse,
    RoundDetailResponse,
    RoundListItem,
    RoundUpdate,
    ServiceResult,
    TxHashUpdate,
)
from peer_rounds.services import RoundRepository, RoundService, get_notifier, get_redis_cache

router = APIRouter(prefix="/api/v1/rounds", tags=["Rounds"])


def get_round_service(db: Session = Depends(get_db)) -> RoundService:
    return RoundService(RoundRepository(db), cache=get_redis_cache(), notifier=get_notifier())


def _unwrap(result: ServiceResult):
    """Return the result data or raise the HTTP error it carries."""
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.message)
    return result.data


@router.get(
    "/current",
    response_model=RoundListItem,
    summary="Get Current Round"
)
def get_current_round(
    org_id: str = Query(..., min_length=1),
    service: RoundService = Depends(get_round_service),
):
    """Latest round of the organization that is not completed yet."""
    return _unwrap(service.get_current_round(org_id))


@router.get(
    "",
    response_model=List[RoundListItem],
    summary="List Rounds"
)
def list_rounds(
    org_id: Optional[str] = None,
    x_wallet_address: Optional[str] = Header(None),
    service: RoundService = Depends(get_round_service),
):
    """Rounds of an organization, newest first.

    Without ``org_id`` the caller's organization is used.
    """
    wallet = None if org_id else x_wallet_address
    return _unwrap(service.get_rounds(org_id=org_id, wallet_address=wallet))


@router.post(
    "/assess",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assess Contributor"
)
def add_assessment(
    payload: AssessmentCreate,
    x_wallet_address: str = Header(...),
    service: RoundService = Depends(get_round_service),
):
    """Submit an assessment of a peer in the caller's active round."""
    return _unwrap(service.add_assessment(
        x_wallet_address,
        payload.contributor_id,
        culture_score=payload.culture_score,
        work_score=payload.work_score,
        feedback_positive=payload.feedback_positive,
        feedback_negative=payload.feedback_negative,
    ))


@router.get(
    "/{round_id}",
    response_model=RoundDetailResponse,
    summary="Get Round"
)
def get_round(round_id: str, service: RoundService = Depends(get_round_service)):
    """Round with per-contributor scores and submitted assessments."""
    return _unwrap(service.get_round_by_id(round_id))


@router.put(
    "/{round_id}",
    response_model=RoundListItem,
    summary="Edit Round"
)
def edit_round(
    round_id: str,
    payload: RoundUpdate,
    service: RoundService = Depends(get_round_service),
):
    """Reschedule an uncompleted round."""
    return _unwrap(service.edit_round(round_id, start_date=payload.start_date, end_date=payload.end_date))


@router.get(
    "/{round_id}/assessments",
    response_model=List[AssessmentResponse],
    summary="List Round Assessments"
)
def get_assessments(
    round_id: str,
    assessor_id: Optional[str] = None,
    assessed_id: Optional[str] = None,
    service: RoundService = Depends(get_round_service),
):
    return _unwrap(service.get_assessments(round_id, assessor_id=assessor_id, assessed_id=assessed_id))


@router.put(
    "/{round_id}/assessments/{assessment_id}",
    response_model=AssessmentResponse,
    summary="Edit Assessment"
)
def edit_assessment(
    round_id: str,
    assessment_id: str,
    payload: AssessmentUpdate,
    x_wallet_address: str = Header(...),
    service: RoundService = Depends(get_round_service),
):
    """Edit one of the caller's assessments while its round is active."""
    return _unwrap(service.edit_assessment(
        x_wallet_address,
        round_id,
        assessment_id,
        culture_score=payload.culture_score,
        work_score=payload.work_score,
        feedback_positive=payload.feedback_positive,
        feedback_negative=payload.feedback_negative,
    ))


@router.post(
    "/{round_id}/assessments/remind",
    response_model=ReminderResponse,
    summary="Remind To Assess"
)
def remind_to_assess(
    round_id: str,
    payload: ReminderRequest,
    service: RoundService = Depends(get_round_service),
):
    return _unwrap(service.remind_to_assess(
        round_id,
        remind_all=payload.remind_all,
        user_ids=payload.user_ids,
    ))


@router.post(
    "/{round_id}/tx-hash",
    response_model=RoundListItem,
    summary="Record Token Mint Transaction"
)
def add_token_mint_tx(
    round_id: str,
    payload: TxHashUpdate,
    service: RoundService = Depends(get_round_service),
):
    """Record the on-chain mint transaction of a completed round."""
    return _unwrap(service.add_token_mint_tx(round_id, payload.tx_hash))
