import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Group(Base):
    __tablename__ = "groups"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    currency = Column(String, default="EUR")
    income_frequency = Column(String, default="annual")
    created_at = Column(DateTime, default=datetime.utcnow)
    archived_at = Column(DateTime, nullable=True)

class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(String, primary_key=True, default=new_id)
    group_id = Column(String, ForeignKey("groups.id"), index=True, nullable=False)
    user_id = Column(String, nullable=True) # None for people without an account
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    income = Column(Integer, default=0) # Monthly income in cents
    coefficient = Column(Integer, default=0) # Share of expenses, scaled by 10000
    joined_at = Column(DateTime, default=datetime.utcnow)
    left_at = Column(DateTime, nullable=True)

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=new_id)
    group_id = Column(String, ForeignKey("groups.id"), index=True, nullable=False)
    paid_by = Column(String, ForeignKey("group_members.id"), nullable=False)
    amount = Column(Integer, nullable=False) # Stored in cents, always positive
    description = Column(String, nullable=False)
    date = Column(String, nullable=False) # ISO date string
    created_by = Column(String, ForeignKey("group_members.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

class ExpenseParticipant(Base):
    __tablename__ = "expense_participants"

    id = Column(String, primary_key=True, default=new_id)
    expense_id = Column(String, ForeignKey("expenses.id"), index=True, nullable=False)
    member_id = Column(String, ForeignKey("group_members.id"), nullable=False)
    custom_amount = Column(Integer, nullable=True) # None means proportional share

class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String, primary_key=True, default=new_id)
    group_id = Column(String, ForeignKey("groups.id"), index=True, nullable=False)
    from_member = Column(String, ForeignKey("group_members.id"), nullable=False)
    to_member = Column(String, ForeignKey("group_members.id"), nullable=False)
    amount = Column(Integer, nullable=False) # Stored in cents, always positive
    date = Column(String, nullable=False) # ISO date string
    created_at = Column(DateTime, default=datetime.utcnow)
