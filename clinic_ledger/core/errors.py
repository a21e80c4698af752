"""Domain error taxonomy.

Every error raised by the booking and ledger services carries a stable
numeric code, a message key for localization, and a category that the HTTP
boundary maps to a status code. Infrastructure errors (SQLAlchemy, network)
are never wrapped in these classes.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Domain-level error categories."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERMISSION_DENIED = "permission_denied"
    VALIDATION_FAILED = "validation_failed"
    UNAUTHENTICATED = "unauthenticated"
    FUNDS_INSUFFICIENT = "funds_insufficient"
    OVERPAYMENT_REJECTED = "overpayment_rejected"


class ClinicError(Exception):
    """Base class for all domain errors."""

    code: int = 0
    message_key: str = "CLINIC_ERROR"
    category: ErrorCategory = ErrorCategory.VALIDATION_FAILED

    def __init__(self, detail: str | None = None, *args: object) -> None:
        self.detail = detail
        self.args_for_message = args
        super().__init__(detail or self.message_key)


# --- NotFound ---


class UserNotFound(ClinicError):
    """Raised when a user (patient or staff) does not exist or is deleted."""

    code = 100
    message_key = "USER_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class ItemNotFound(ClinicError):
    """Raised when a catalog item does not exist or is deleted."""

    code = 300
    message_key = "ITEM_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class ScheduleNotFound(ClinicError):
    """Raised when a schedule slot does not exist or is deleted."""

    code = 400
    message_key = "DOCTOR_SCHEDULE_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class CardNotFound(ClinicError):
    """Raised when the patient has no open card."""

    code = 550
    message_key = "CARD_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class BookingNotFound(ClinicError):
    """Raised when a booking does not exist or is deleted."""

    code = 551
    message_key = "BOOKING_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


# --- Conflict ---


class UserAlreadyExists(ClinicError):
    code = 101
    message_key = "USER_ALREADY_EXISTS"
    category = ErrorCategory.CONFLICT


class ItemAlreadyExists(ClinicError):
    code = 301
    message_key = "ITEM_ALREADY_EXISTS"
    category = ErrorCategory.CONFLICT


class ScheduleNotAvailable(ClinicError):
    """Raised when no free slot exists for the doctor on the requested day."""

    code = 401
    message_key = "DOCTOR_SCHEDULE_NOT_AVAILABLE"
    category = ErrorCategory.CONFLICT


class SlotAlreadyExists(ClinicError):
    """Raised when the doctor already has a slot on that day."""

    code = 402
    message_key = "DAY_NOT_AVAILABLE"
    category = ErrorCategory.CONFLICT


class SlotOccupied(ClinicError):
    """Raised when trying to delete a slot that holds a booking."""

    code = 403
    message_key = "DOCTOR_SCHEDULE_OCCUPIED"
    category = ErrorCategory.CONFLICT


class BookingAlreadyClosed(ClinicError):
    code = 652
    message_key = "BOOKING_ALREADY_CLOSED"
    category = ErrorCategory.CONFLICT


class AlreadyFullyPaid(ClinicError):
    """Raised when charging a booking whose payment is already PAID."""

    code = 701
    message_key = "ALREADY_FULLY_PAID"
    category = ErrorCategory.CONFLICT


class PaymentConflict(ClinicError):
    """Raised when a concurrent request created the booking's payment first."""

    code = 703
    message_key = "PAYMENT_CONFLICT"
    category = ErrorCategory.CONFLICT


class CardNumberUnavailable(ClinicError):
    """Raised when no unused card number was drawn within the attempt limit."""

    code = 553
    message_key = "CARD_NUMBER_UNAVAILABLE"
    category = ErrorCategory.CONFLICT


# --- PermissionDenied ---


class NoPermission(ClinicError):
    """Raised when the actor's role or ownership does not allow the action."""

    code = 500
    message_key = "NO_HAVE_PERMISSION"
    category = ErrorCategory.PERMISSION_DENIED


# --- ValidationFailed ---


class ValidationFailed(ClinicError):
    code = 600
    message_key = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION_FAILED


class InvalidDateRange(ValidationFailed):
    """Raised when a booking would close before it started."""

    code = 650
    message_key = "BEFORE_TIME_ERROR"


class InvalidCredentials(ClinicError):
    code = 800
    message_key = "LOGIN_ERROR"
    category = ErrorCategory.UNAUTHENTICATED


# --- Ledger ---


class InsufficientFunds(ClinicError):
    """Raised when the card balance is below the requested charge."""

    code = 700
    message_key = "BALANCE_NOT_ENOUGH"
    category = ErrorCategory.FUNDS_INSUFFICIENT


class OverpaymentNotAllowed(ClinicError):
    """Raised when a charge would push the paid amount above the item price."""

    code = 702
    message_key = "OVERPAYMENT_NOT_ALLOWED"
    category = ErrorCategory.OVERPAYMENT_REJECTED


MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "CLINIC_ERROR": "Request could not be processed",
        "USER_NOT_FOUND": "User not found",
        "USER_ALREADY_EXISTS": "User with this username already exists",
        "ITEM_NOT_FOUND": "Service not found",
        "ITEM_ALREADY_EXISTS": "Service with this name already exists",
        "DOCTOR_SCHEDULE_NOT_FOUND": "Doctor schedule not found",
        "DOCTOR_SCHEDULE_NOT_AVAILABLE": "Doctor is not available on this day",
        "DAY_NOT_AVAILABLE": "Doctor already has a schedule for this day",
        "DOCTOR_SCHEDULE_OCCUPIED": "Schedule has a booking and cannot be removed",
        "CARD_NOT_FOUND": "Card not found",
        "BOOKING_NOT_FOUND": "Booking not found",
        "BOOKING_ALREADY_CLOSED": "Booking is already finished",
        "NO_HAVE_PERMISSION": "You do not have permission for this action",
        "VALIDATION_ERROR": "Validation error",
        "BEFORE_TIME_ERROR": "Finish date cannot be before the start date",
        "LOGIN_ERROR": "Invalid username or password",
        "BALANCE_NOT_ENOUGH": "Balance is not enough",
        "ALREADY_FULLY_PAID": "Service is already fully paid",
        "OVERPAYMENT_NOT_ALLOWED": "Payment exceeds the remaining price",
        "PAYMENT_CONFLICT": "Payment was changed by another request, try again",
        "CARD_NUMBER_UNAVAILABLE": "Could not issue a card number, try again",
    },
    "ru": {
        "CLINIC_ERROR": "Запрос не может быть обработан",
        "USER_NOT_FOUND": "Пользователь не найден",
        "USER_ALREADY_EXISTS": "Пользователь с таким логином уже существует",
        "ITEM_NOT_FOUND": "Услуга не найдена",
        "ITEM_ALREADY_EXISTS": "Услуга с таким названием уже существует",
        "DOCTOR_SCHEDULE_NOT_FOUND": "Расписание врача не найдено",
        "DOCTOR_SCHEDULE_NOT_AVAILABLE": "Врач недоступен в этот день",
        "DAY_NOT_AVAILABLE": "У врача уже есть расписание на этот день",
        "DOCTOR_SCHEDULE_OCCUPIED": "Расписание занято и не может быть удалено",
        "CARD_NOT_FOUND": "Карта не найдена",
        "BOOKING_NOT_FOUND": "Запись не найдена",
        "BOOKING_ALREADY_CLOSED": "Запись уже завершена",
        "NO_HAVE_PERMISSION": "Нет прав для этого действия",
        "VALIDATION_ERROR": "Ошибка валидации",
        "BEFORE_TIME_ERROR": "Дата окончания не может быть раньше даты начала",
        "LOGIN_ERROR": "Неверный логин или пароль",
        "BALANCE_NOT_ENOUGH": "Недостаточно средств на балансе",
        "ALREADY_FULLY_PAID": "Услуга уже полностью оплачена",
        "OVERPAYMENT_NOT_ALLOWED": "Сумма превышает остаток стоимости",
        "PAYMENT_CONFLICT": "Оплата изменена другим запросом, повторите попытку",
        "CARD_NUMBER_UNAVAILABLE": "Не удалось выдать номер карты, повторите попытку",
    },
    "uz": {
        "CLINIC_ERROR": "So'rovni bajarib bo'lmadi",
        "USER_NOT_FOUND": "Foydalanuvchi topilmadi",
        "USER_ALREADY_EXISTS": "Bunday foydalanuvchi nomi mavjud",
        "ITEM_NOT_FOUND": "Xizmat topilmadi",
        "ITEM_ALREADY_EXISTS": "Bunday nomli xizmat mavjud",
        "DOCTOR_SCHEDULE_NOT_FOUND": "Shifokor jadvali topilmadi",
        "DOCTOR_SCHEDULE_NOT_AVAILABLE": "Shifokor bu kunda band",
        "DAY_NOT_AVAILABLE": "Shifokorning bu kunga jadvali bor",
        "DOCTOR_SCHEDULE_OCCUPIED": "Jadval band, o'chirib bo'lmaydi",
        "CARD_NOT_FOUND": "Karta topilmadi",
        "BOOKING_NOT_FOUND": "Yozilish topilmadi",
        "BOOKING_ALREADY_CLOSED": "Yozilish allaqachon yakunlangan",
        "NO_HAVE_PERMISSION": "Bu amal uchun ruxsat yo'q",
        "VALIDATION_ERROR": "Validatsiya xatosi",
        "BEFORE_TIME_ERROR": "Tugash sanasi boshlanish sanasidan oldin bo'lishi mumkin emas",
        "LOGIN_ERROR": "Login yoki parol noto'g'ri",
        "BALANCE_NOT_ENOUGH": "Balansda mablag' yetarli emas",
        "ALREADY_FULLY_PAID": "Xizmat to'liq to'langan",
        "OVERPAYMENT_NOT_ALLOWED": "To'lov qolgan narxdan oshib ketdi",
        "PAYMENT_CONFLICT": "To'lov boshqa so'rov bilan o'zgartirildi, qayta urinib ko'ring",
        "CARD_NUMBER_UNAVAILABLE": "Karta raqamini berib bo'lmadi, qayta urinib ko'ring",
    },
}


def resolve_message(message_key: str, locale: str | None = None) -> str:
    """Resolve a message key for a locale, falling back to English."""
    catalog = MESSAGES.get((locale or "en").lower()[:2], MESSAGES["en"])
    return catalog.get(message_key) or MESSAGES["en"].get(message_key, message_key)
