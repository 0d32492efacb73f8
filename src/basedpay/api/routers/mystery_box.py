"""Mystery box reward API routes."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from prometheus_client import Counter, Histogram

from ...application.rewards.dtos import (
    AmountPayload,
    ClaimPayload,
    ClaimResponseDTO,
    ContractBalanceDTO,
    FundsResponseDTO,
    GlobalStatsDTO,
    GrantBatchPayload,
    GrantBatchResponseDTO,
    GrantPayload,
    GrantResponseDTO,
    PrizeTableDTO,
    RewardEventDTO,
    UpdatePrizeTiersPayload,
    UserStatsDTO,
)
from ...application.rewards.use_cases.mystery_box import MysteryBoxService
from ...application.shared.signed_requests import (
    RequestAuthenticator,
    SignedRequestDTO,
)
from ..dependencies import get_mystery_box_service, get_request_authenticator
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mystery-box", tags=["mystery-box"])


box_claims_total = Counter(
    "mystery_box_claims_total",
    "Total mystery box claim requests processed",
    ["status"],
)

box_claim_duration_seconds = Histogram(
    "mystery_box_claim_duration_seconds",
    "Wall time to process a mystery box claim",
    ["status"],
)

box_prizes_paid_units_total = Counter(
    "mystery_box_prizes_paid_units_total",
    "Total USDC units paid out as prizes",
)

boxes_granted_total = Counter(
    "mystery_box_boxes_granted_total",
    "Total mystery boxes granted",
)


@router.post(
    "/grants",
    response_model=GrantResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def grant_box(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> GrantResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "grant_box", GrantPayload
        )
        result = await service.grant(caller, payload.user)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    boxes_granted_total.inc()
    return result


@router.post(
    "/grants/batch",
    response_model=GrantBatchResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def grant_box_batch(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> GrantBatchResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "grant_box_batch", GrantBatchPayload
        )
        result = await service.grant_batch(caller, payload.users)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    boxes_granted_total.inc(len(result.granted))
    return result


@router.post(
    "/claims",
    response_model=ClaimResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def claim_box(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> ClaimResponseDTO:
    """Open one of the caller's boxes and pay out the drawn prize."""
    start_time = time.perf_counter()
    try:
        caller, _ = await authenticator.authenticate(
            request, "claim_box", ClaimPayload
        )
        result = await service.claim(caller)
        box_claims_total.labels(status="success").inc()
        box_prizes_paid_units_total.inc(result.prize_amount)
        elapsed = time.perf_counter() - start_time
        box_claim_duration_seconds.labels(status="success").observe(elapsed)
        return result
    except (ValueError, PermissionError) as e:
        box_claims_total.labels(status="client_error").inc()
        elapsed = time.perf_counter() - start_time
        box_claim_duration_seconds.labels(status="client_error").observe(elapsed)
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Failed to process mystery box claim")
        box_claims_total.labels(status="server_error").inc()
        elapsed = time.perf_counter() - start_time
        box_claim_duration_seconds.labels(status="server_error").observe(elapsed)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to claim mystery box: {str(e)}",
        )


@router.get(
    "/users/{address}/stats",
    response_model=UserStatsDTO,
)
async def get_user_stats(
    address: str,
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> UserStatsDTO:
    try:
        return await service.get_user_stats(address)
    except ValueError as e:
        raise to_http_exception(e)


@router.post(
    "/funds/deposits",
    response_model=FundsResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def deposit_funds(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> FundsResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "deposit_funds", AmountPayload
        )
        return await service.deposit_funds(caller, payload.amount)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post(
    "/funds/withdrawals",
    response_model=FundsResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def withdraw_funds(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> FundsResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "withdraw_funds", AmountPayload
        )
        return await service.withdraw_funds(caller, payload.amount)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/prize-tiers", response_model=PrizeTableDTO)
async def get_prize_tiers(
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> PrizeTableDTO:
    return await service.get_prize_tiers()


@router.put("/prize-tiers", response_model=PrizeTableDTO)
async def update_prize_tiers(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> PrizeTableDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "update_prize_tiers", UpdatePrizeTiersPayload
        )
        return await service.update_prize_tiers(
            caller, payload.amounts, payload.cumulative_weights
        )
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/balance", response_model=ContractBalanceDTO)
async def get_contract_balance(
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> ContractBalanceDTO:
    return ContractBalanceDTO(
        custody_address=service.custody_address,
        contract_balance=await service.get_contract_balance(),
    )


@router.get("/stats", response_model=GlobalStatsDTO)
async def get_global_stats(
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> GlobalStatsDTO:
    return await service.get_global_stats()


@router.get("/events", response_model=list[RewardEventDTO])
async def list_events(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: MysteryBoxService = Depends(get_mystery_box_service),
) -> list[RewardEventDTO]:
    return await service.list_events(skip=skip, limit=limit)
