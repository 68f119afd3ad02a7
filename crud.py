import logging
import uuid
from typing import Optional

from passlib.context import CryptContext
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import get_settings
from database import User, Expense
from schemas import ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpensePage

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 5

logger = logging.getLogger("uvicorn.error")

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


class DuplicateUsernameError(Exception):
    pass


class ExpenseNotFoundError(Exception):
    pass


class ExpenseValidationError(Exception):
    def __init__(self, errors: list):
        super().__init__("Invalid expense fields")
        self.errors = errors


# --------- Credential store ----------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(User.username == normalize_username(username))
        .first()
    )


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, username: str, password: str) -> User:
    username = normalize_username(username)
    if get_user_by_username(db, username):
        raise DuplicateUsernameError(username)

    user = User(username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race against a concurrent registration
        db.rollback()
        raise DuplicateUsernameError(username)
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.username, user.id)
    return user


# --------- Expenses ----------
def _is_valid_id(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def get_expense(db: Session, owner_id: str, expense_id: str) -> Expense:
    """
    Fetch one expense belonging to owner_id.

    A malformed id, an unknown id and someone else's id are indistinguishable
    to the caller: all raise ExpenseNotFoundError.
    """
    if not _is_valid_id(expense_id):
        raise ExpenseNotFoundError(expense_id)
    expense = (
        db.query(Expense)
        .filter(Expense.id == str(expense_id), Expense.owner_id == owner_id)
        .first()
    )
    if expense is None:
        raise ExpenseNotFoundError(expense_id)
    return expense


def create_expense(db: Session, owner_id: str, data: ExpenseCreate) -> Expense:
    expense = Expense(owner_id=owner_id, **data.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Created expense %s for user %s", expense.id, owner_id)
    return expense


def update_expense(
    db: Session, owner_id: str, expense_id: str, data: ExpenseUpdate
) -> Expense:
    expense = get_expense(db, owner_id, expense_id)

    merged = {
        "description": expense.description,
        "category": expense.category,
        "is_reimbursable": expense.is_reimbursable,
        "base_amount": expense.base_amount,
        "tax_amount": expense.tax_amount,
    }
    merged.update(data.model_dump(exclude_unset=True))
    try:
        validated = ExpenseCreate.model_validate(merged)
    except ValidationError as exc:
        raise ExpenseValidationError(
            [
                {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                for e in exc.errors()
            ]
        )

    for field, value in validated.model_dump().items():
        setattr(expense, field, value)
    db.commit()
    db.refresh(expense)
    logger.info("Updated expense %s for user %s", expense.id, owner_id)
    return expense


def delete_expense(db: Session, owner_id: str, expense_id: str) -> None:
    expense = get_expense(db, owner_id, expense_id)
    db.delete(expense)
    db.commit()
    logger.info("Deleted expense %s for user %s", expense_id, owner_id)


# --------- Query composer ----------
def _coerce_positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_expenses(
    db: Session,
    owner_id: str,
    page=None,
    limit=None,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> ExpensePage:
    """
    One page of owner_id's expenses, newest first.

    category is an exact, case-insensitive match; search is a case-insensitive
    substring match on the description. Both are optional and combine with
    each other. page and limit fall back to their defaults when missing,
    non-numeric or below 1. A page past the end yields no items.
    """
    page = _coerce_positive_int(page, DEFAULT_PAGE)
    limit = _coerce_positive_int(limit, DEFAULT_LIMIT)

    query = db.query(Expense).filter(Expense.owner_id == owner_id)
    if category and category.strip():
        query = query.filter(
            func.lower(Expense.category) == category.strip().lower()
        )
    if search and search.strip():
        pattern = f"%{_escape_like(search.strip().lower())}%"
        query = query.filter(
            func.lower(Expense.description).like(pattern, escape="\\")
        )

    total_count = query.count()
    offset = (page - 1) * limit
    items = []
    # huge page/limit values must never reach the database as integers
    if offset < total_count:
        items = (
            query.order_by(Expense.created_at.desc(), Expense.id.desc())
            .offset(offset)
            .limit(min(limit, total_count - offset))
            .all()
        )

    return ExpensePage(
        items=[ExpenseOut.model_validate(e) for e in items],
        current_page=page,
        total_pages=-(-total_count // limit),
        total_count=total_count,
    )
