"""Patient card endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from clinic_ledger.api.deps import DbSession, require_permissions
from clinic_ledger.models.user import User
from clinic_ledger.schemas.ledger import CardRead, TopUpRequest
from clinic_ledger.services.ledger import LedgerService
from clinic_ledger.services.rbac import Permission

router = APIRouter()

CardOwner = Annotated[User, Depends(require_permissions(Permission.CARDS_WRITE))]


@router.post(
    "",
    response_model=CardRead,
    status_code=status.HTTP_200_OK,
    summary="Open my card",
    description="Idempotent: returns the existing card when there is one",
)
async def open_card(
    session: DbSession,
    user: CardOwner,
) -> CardRead:
    card = await LedgerService(session).open_card(user.id)
    return CardRead.model_validate(card)


@router.get(
    "/me",
    response_model=CardRead,
    summary="Get my card",
)
async def read_my_card(
    session: DbSession,
    user: CardOwner,
) -> CardRead:
    card = await LedgerService(session).cards.require_card(user.id)
    return CardRead.model_validate(card)


@router.put(
    "/balance",
    response_model=CardRead,
    summary="Top up my card",
)
async def top_up(
    request: TopUpRequest,
    session: DbSession,
    user: CardOwner,
) -> CardRead:
    card = await LedgerService(session).top_up(user.id, request.amount)
    return CardRead.model_validate(card)
