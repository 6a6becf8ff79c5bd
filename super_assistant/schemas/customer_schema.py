"""Member record models, serialized with the camelCase keys the front end expects."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BalanceSummary(_CamelModel):
    """Current superannuation balance."""
    amount: float
    last_updated: str
    growth_rate: float


class CustomerRecord(_CamelModel):
    """The member's details held by the fund."""
    name: str
    email: str
    address: str
    member_id: str
    balance: BalanceSummary


class CustomerUpdate(_CamelModel):
    """Fields a member may change; omitted or empty fields are left alone."""
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdateResponse(_CamelModel):
    message: str = "Customer information updated successfully"
    data: CustomerRecord


class ChoiceOfFundForm(_CamelModel):
    """Pre-filled Choice of Fund (superannuation standard choice) form."""
    member_name: str
    member_id: str
    email: str
    address: str
    fund_name: str
    fund_abn: str
    fund_usi: str
    declaration: str = Field(
        default="I nominate the fund above to receive my superannuation contributions."
    )
