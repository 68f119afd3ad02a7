from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Any, Optional

from database import CATEGORIES, DEFAULT_CATEGORY


class CamelModel(BaseModel):
    """JSON keys are camelCase; snake_case names are accepted on input too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def canonical_category(value: str) -> str:
    """Match a category name case-insensitively and return its canonical spelling."""
    for category in CATEGORIES:
        if category.lower() == value.strip().lower():
            return category
    raise ValueError(f"Category must be one of: {', '.join(CATEGORIES)}")


# -------- Auth / User --------
class UserBase(CamelModel):
    username: constr(strip_whitespace=True, to_lower=True, min_length=1, max_length=50)


class UserCreate(UserBase):
    password: constr(min_length=1, max_length=72)


class UserLogin(CamelModel):
    # no length cap: an overlong username is just an unknown one
    username: constr(strip_whitespace=True, to_lower=True, min_length=1)
    password: constr(min_length=1)


class UserOut(CamelModel):
    id: str
    username: str


class RegisterResponse(UserOut):
    created_at: datetime


class LoginResponse(UserOut):
    token: str


# -------- Expenses --------
Amount = Annotated[float, Field(ge=0, allow_inf_nan=False)]


class ExpenseCreate(CamelModel):
    description: constr(strip_whitespace=True, min_length=1, max_length=200)
    category: str = DEFAULT_CATEGORY
    is_reimbursable: bool = False
    base_amount: Amount
    tax_amount: Amount

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return canonical_category(v)


class ExpenseUpdate(CamelModel):
    """
    Partial update; every field left out keeps its stored value.

    Values are taken as sent and only checked once merged with the stored
    expense, so a bad body on an expense the caller cannot see is still a 404.
    """

    description: Any = None
    category: Any = None
    is_reimbursable: Any = None
    base_amount: Any = None
    tax_amount: Any = None


class ExpenseOut(CamelModel):
    id: str
    owner_id: str
    description: str
    category: str
    is_reimbursable: bool
    base_amount: float
    tax_amount: float
    total_amount: float
    created_at: datetime
    updated_at: datetime


class ExpensePage(CamelModel):
    items: list[ExpenseOut]
    current_page: int
    total_pages: int
    total_count: int


class DeleteResponse(CamelModel):
    message: str
    id: str
