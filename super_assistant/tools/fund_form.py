"""
Choice of Fund form pre-fill and mocked delivery.

In production the completed form would be emailed to the member as a PDF.
Here delivery is logged and a receipt returned.
"""

import logging
import uuid
from datetime import datetime, timezone

from super_assistant.config import settings
from super_assistant.schemas.customer_schema import ChoiceOfFundForm, CustomerRecord

logger = logging.getLogger(__name__)


def build_choice_of_fund_form(record: CustomerRecord) -> ChoiceOfFundForm:
    """Pre-fill the form from the member record and the fund's details."""
    assistant = settings.assistant
    return ChoiceOfFundForm(
        member_name=record.name,
        member_id=record.member_id,
        email=record.email,
        address=record.address,
        fund_name=assistant.fund_name,
        fund_abn=assistant.fund_abn,
        fund_usi=assistant.fund_usi,
    )


def send_form_copy(form: ChoiceOfFundForm) -> dict[str, str]:
    """Pretend to email the form to the member. Returns a delivery receipt."""
    receipt = {
        "receiptId": f"CF-{uuid.uuid4().hex[:8].upper()}",
        "sentTo": form.email,
        "sentAt": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("Choice of Fund form %s sent to %s", receipt["receiptId"], form.email)
    return receipt
