from datetime import datetime
from pydantic import BaseModel, EmailStr, field_validator
from typing import Literal, Optional

VALID_CURRENCIES = ['EUR', 'USD', 'GBP', 'CHF', 'CAD', 'JPY']
VALID_INCOME_FREQUENCIES = ['monthly', 'annual']

class MemberRef(BaseModel):
    id: str
    name: str

class MemberParty(MemberRef):
    is_current_user: bool = False

# Groups
class GroupBase(BaseModel):
    name: str
    description: Optional[str] = None
    currency: str = "EUR"
    income_frequency: str = "annual"

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        if v not in VALID_CURRENCIES:
            raise ValueError(f'Currency must be one of {VALID_CURRENCIES}')
        return v

    @field_validator('income_frequency')
    @classmethod
    def validate_income_frequency(cls, v):
        if v not in VALID_INCOME_FREQUENCIES:
            raise ValueError(f'Income frequency must be one of {VALID_INCOME_FREQUENCIES}')
        return v

class GroupCreate(GroupBase):
    creator_name: str
    creator_email: Optional[EmailStr] = None
    creator_user_id: Optional[str] = None
    creator_income: int = 0

class Group(GroupBase):
    id: str
    created_at: datetime
    archived_at: Optional[datetime] = None
    is_archived: bool = False

    class Config:
        from_attributes = True

# Members
class MemberCreate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    user_id: Optional[str] = None
    income: int = 0

class MemberUpdate(BaseModel):
    name: Optional[str] = None
    income: Optional[int] = None

class Member(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    user_id: Optional[str] = None
    income: int
    coefficient: int
    coefficient_percent: int
    joined_at: datetime
    is_current_user: bool = False

class GroupWithMembers(Group):
    members: list[Member]

class GroupSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    currency: str
    member_count: int
    my_member_id: str
    my_balance: int  # Net balance in cents, positive when owed money
    is_archived: bool
    created_at: datetime

class ArchiveStatus(BaseModel):
    success: bool = True
    is_archived: bool

# Expenses
class ParticipantIn(BaseModel):
    member_id: str
    custom_amount: Optional[int] = None  # None means proportional share

class ExpenseCreate(BaseModel):
    amount: int  # In cents
    description: str
    date: str
    paid_by: str
    participants: list[ParticipantIn]

class ExpenseUpdate(BaseModel):
    amount: Optional[int] = None
    description: Optional[str] = None
    date: Optional[str] = None
    paid_by: Optional[str] = None
    participants: Optional[list[ParticipantIn]] = None

class ExpenseParticipantDetail(BaseModel):
    member_id: str
    member_name: str
    custom_amount: Optional[int] = None
    share: int

class Expense(BaseModel):
    id: str
    group_id: str
    amount: int
    description: str
    date: str
    paid_by: MemberRef
    created_by: str
    created_at: datetime

class ExpenseListItem(Expense):
    participant_count: int
    my_share: int

class ExpenseWithParticipants(Expense):
    participants: list[ExpenseParticipantDetail]

class ExpenseList(BaseModel):
    expenses: list[ExpenseListItem]
    next_cursor: Optional[str] = None
    has_more: bool = False

# Balances
class MemberBalance(BaseModel):
    member_id: str
    member_name: str
    member_user_id: Optional[str] = None
    total_paid: int
    total_owed: int
    balance: int
    settlements_paid: int
    settlements_received: int
    net_balance: int  # Positive means the member is owed money
    is_current_user: bool = False

class BalanceList(BaseModel):
    balances: list[MemberBalance]
    total_expenses: int
    is_valid: bool

class MyBalanceExpense(BaseModel):
    id: str
    description: str
    date: str
    amount: int
    paid_by: MemberRef
    my_share: int
    is_payer: bool

class MyBalanceSettlement(BaseModel):
    id: str
    date: str
    amount: int
    direction: Literal['sent', 'received']
    other_member: MemberRef

class MyBalance(BaseModel):
    balance: MemberBalance
    expenses: list[MyBalanceExpense]
    settlements: list[MyBalanceSettlement]

class MemberStats(BaseModel):
    member_id: str
    member_name: str
    total_paid: int
    percentage: int

class MonthStats(BaseModel):
    month: str
    total: int
    count: int

class GroupStats(BaseModel):
    total_expenses: int
    expense_count: int
    average_expense: int
    by_member: list[MemberStats]
    by_month: list[MonthStats]

# Settlements
class SettlementCreate(BaseModel):
    to_member: str
    amount: int  # In cents
    date: str

class Settlement(BaseModel):
    id: str
    group_id: str
    from_member: MemberParty
    to_member: MemberParty
    amount: int
    date: str
    created_at: datetime

class SettlementList(BaseModel):
    settlements: list[Settlement]
    next_cursor: Optional[str] = None
    has_more: bool = False

class SettlementSuggestion(BaseModel):
    from_member: MemberParty
    to_member: MemberParty
    amount: int

class SuggestionList(BaseModel):
    suggestions: list[SettlementSuggestion]

class Created(BaseModel):
    id: str

class Success(BaseModel):
    success: bool = True
