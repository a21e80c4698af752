"""Payment endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from clinic_ledger.api.deps import CurrentUser, DbSession, require_permissions
from clinic_ledger.models.user import User
from clinic_ledger.schemas.ledger import PaymentCreate, PaymentDetailRead, PaymentRead
from clinic_ledger.services.ledger import LedgerService
from clinic_ledger.services.rbac import Permission, RBACService

router = APIRouter()


@router.post(
    "",
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Pay for a booking",
    description="Charge the booking from the caller's card; partial payments accumulate",
)
async def create_payment(
    request: PaymentCreate,
    session: DbSession,
    user: Annotated[User, Depends(require_permissions(Permission.PAYMENTS_CREATE))],
) -> PaymentRead:
    payment = await LedgerService(session).charge_for_booking(
        booking_id=request.booking_id,
        amount=request.paid_amount,
        method=request.method,
        actor_id=user.id,
    )
    return PaymentRead.model_validate(payment)


@router.get(
    "/patient/{patient_id}",
    response_model=PaymentDetailRead,
    summary="Patient payment detail",
)
async def patient_payments(
    patient_id: str,
    session: DbSession,
    user: CurrentUser,
) -> PaymentDetailRead:
    RBACService.decide_owned(user, patient_id, None, Permission.PAYMENTS_READ_ANY).enforce()
    detail = await LedgerService(session).detail_for_patient(patient_id)
    return PaymentDetailRead.from_detail(detail)
