"""
Typed request bodies for every form that writes to the database.

Each route parses ``request.form`` into one of these models with
``parse`` before touching a connection, so a bad submission never
reaches the store.
"""

import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from finance import BUDGET_PERIODS, CURRENCIES, ValidationError

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'
COLOR_PATTERN = r'^#[0-9a-fA-F]{6}$'
LANGUAGES = ('en', 'es', 'fr', 'de')

FIELD_LABELS = {
    'category_id': 'Category',
    'due_date': 'Due date',
    'start_date': 'Start date',
    'end_date': 'End date',
    'payment_method': 'Payment method',
    'full_name': 'Full name',
    'student_id': 'Student ID',
    'grade_level': 'Grade level',
}


class Command(BaseModel):
    model_config = {'str_strip_whitespace': True, 'extra': 'ignore'}

    @field_validator('*', mode='before')
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CreateFee(Command):
    category_id: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    due_date: datetime.date
    notes: Optional[str] = Field(default=None, max_length=500)


class RecordPayment(Command):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=500)


class CreateExpense(Command):
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category_id: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    date: datetime.date
    payment_method: str = Field(max_length=50)


class SetBudget(Command):
    category_id: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    period: Literal[BUDGET_PERIODS] = 'monthly'
    start_date: datetime.date
    end_date: datetime.date

    @model_validator(mode='after')
    def window_is_ordered(self):
        if self.end_date < self.start_date:
            raise ValueError('end date must not be before start date')
        return self


class CreateCategory(Command):
    name: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)
    is_recurring: bool = False


class SaveProfile(Command):
    full_name: str = Field(max_length=100)
    email: str = Field(max_length=120, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=255)
    student_id: str = Field(max_length=50)
    grade_level: str = Field(max_length=50)
    class_section: Optional[str] = Field(default=None, max_length=20)
    parent_guardian_name: Optional[str] = Field(default=None, max_length=100)
    parent_guardian_phone: Optional[str] = Field(default=None, max_length=20)

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class SavePreferences(Command):
    email: bool = False
    push: bool = False
    sms: bool = False
    fee_reminders: bool = False
    payment_confirmations: bool = False
    profile_visibility: Literal['public', 'private'] = 'private'
    show_email: bool = False
    show_phone: bool = False
    language: Literal[LANGUAGES] = 'en'
    currency: Literal[tuple(CURRENCIES)] = 'INR'


def _describe(error):
    loc = error.get('loc') or ()
    if not loc:
        return error['msg'].removeprefix('Value error, ').capitalize()
    field = str(loc[0])
    label = FIELD_LABELS.get(field, field.replace('_', ' ').capitalize())
    if error['type'] == 'missing' or error.get('input') is None:
        return f"{label} is required."
    return f"{label}: {error['msg']}."


def parse(command_class, form):
    """Build ``command_class`` from a form mapping or raise ``ValidationError``."""
    data = dict(form.items())
    try:
        return command_class.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc.errors()[0])) from exc
