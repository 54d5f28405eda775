"""
Payment Service for Czech bank transfer QR codes
Builds SPD payment strings and stores one Payment per registration
"""

import base64
import random
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from io import BytesIO
from typing import Dict, List, Optional, Union

import qrcode
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ValidationError, get_code, Module, ErrorCode
from app.models.payment import Payment
from app.models.registration import Registration
from app.utils.timezone import to_local, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankAccount:
    id: str
    name: str
    account_number: str
    description: str = ""
    is_default: bool = False


BANK_ACCOUNTS: List[BankAccount] = [
    BankAccount(
        id="main",
        name="Main Account",
        account_number="CZ9130300000001628400020",
        description="Main event account",
        is_default=True,
    ),
    BankAccount(
        id="vitek",
        name="Vitek Account",
        account_number="CZ5220100000002801494468",
        description="Vitek's account",
    ),
]


def get_bank_account(account_id: Optional[str]) -> Optional[BankAccount]:
    """Look up a bank account by id"""
    for account in BANK_ACCOUNTS:
        if account.id == account_id:
            return account
    return None


def get_default_bank_account() -> BankAccount:
    """Configured default account, else the one flagged as default"""
    if settings.DEFAULT_BANK_ACCOUNT:
        configured = get_bank_account(settings.DEFAULT_BANK_ACCOUNT)
        if configured:
            return configured
        logger.warning(f"Unknown DEFAULT_BANK_ACCOUNT '{settings.DEFAULT_BANK_ACCOUNT}', using built-in default")
    for account in BANK_ACCOUNTS:
        if account.is_default:
            return account
    return BANK_ACCOUNTS[0]


def list_bank_accounts() -> List[BankAccount]:
    return list(BANK_ACCOUNTS)


def generate_variable_symbol(now: Optional[datetime] = None) -> str:
    """yyMMdd followed by four random digits"""
    now = to_local(now or utcnow())
    return f"{now:%y%m%d}{random.randint(0, 9999):04d}"


def format_amount(price: Union[Decimal, float, int]) -> str:
    amount = Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{amount:.2f}"


def build_spd_string(
    first_name: str,
    price: Union[Decimal, float, int],
    account: BankAccount,
    variable_symbol: str,
    now: Optional[datetime] = None
) -> str:
    """
    Short Payment Descriptor understood by Czech banking apps, e.g.

    SPD*1.0*ACC:CZ91...*AM:150.00*CC:CZK*MSG:Game On! (07. 03. 25) - Jana *X-VS:2503071234
    """
    now = to_local(now or utcnow())
    message = f"{settings.PAYMENT_MESSAGE_PREFIX} ({now:%d. %m. %y}) - {first_name} "
    return (
        "SPD*1.0"
        f"*ACC:{account.account_number}"
        f"*AM:{format_amount(price)}"
        f"*CC:{settings.PAYMENT_CURRENCY}"
        f"*MSG:{message}"
        f"*X-VS:{variable_symbol}"
    )


def generate_qr_data_url(text: str, border: int = 4) -> str:
    """Render text as a PNG QR code and return it as a data URL"""
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=8,
            border=border,
        )
        qr.add_data(text)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/png;base64,{encoded}"

    except Exception as e:
        logger.error(f"Error generating QR code: {str(e)}")
        raise


class PaymentService:
    """Service for bank transfer payments"""

    @staticmethod
    def resolve_account(bank_account_id: Optional[str]) -> BankAccount:
        if not bank_account_id:
            return get_default_bank_account()
        account = get_bank_account(bank_account_id)
        if not account:
            raise ValidationError(
                f"Bank account with ID '{bank_account_id}' not found",
                field="bank_account_id",
                code=get_code(Module.REGISTRATION, ErrorCode.BAD_PAYMENT_TYPE)
            )
        return account

    @staticmethod
    def create_payment(
        session: AsyncSession,
        registration: Registration,
        price: Union[Decimal, float, int],
        bank_account_id: Optional[str] = None
    ) -> Payment:
        """
        Build the QR payment for a registration and add it to the session.
        The caller owns the transaction.
        """
        account = PaymentService.resolve_account(bank_account_id)
        now = utcnow()
        variable_symbol = generate_variable_symbol(now)
        spd = build_spd_string(registration.first_name, price, account, variable_symbol, now)

        payment = Payment(
            registration_id=registration.id,
            variable_symbol=variable_symbol,
            qr_data=generate_qr_data_url(spd),
            paid=False,
        )
        session.add(payment)
        logger.info(f"Payment {variable_symbol} prepared for registration {registration.id} on account {account.id}")
        return payment

    @staticmethod
    async def get_for_registration(session: AsyncSession, registration_id) -> Optional[Payment]:
        result = await session.execute(
            select(Payment).where(Payment.registration_id == registration_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def payments_by_registration(session: AsyncSession, registration_ids) -> Dict:
        if not registration_ids:
            return {}
        result = await session.execute(
            select(Payment).where(Payment.registration_id.in_(list(registration_ids)))
        )
        return {payment.registration_id: payment for payment in result.scalars().all()}


payment_service = PaymentService()
