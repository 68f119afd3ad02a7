from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

import crud
from auth import Identity, get_current_user
from database import get_db
from schemas import (
    DeleteResponse,
    ExpenseCreate,
    ExpenseOut,
    ExpensePage,
    ExpenseUpdate,
)


router = APIRouter()


def _not_found():
    return HTTPException(status_code=404, detail="Expense not found")


@router.post(
    "/expenses", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED
)
def create_expense(
    expense: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    return crud.create_expense(db, current_user.user_id, expense)


@router.get("/expenses", response_model=ExpensePage)
def list_expenses(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    # page/limit stay strings here so junk input falls back to defaults
    return crud.list_expenses(
        db,
        current_user.user_id,
        page=page,
        limit=limit,
        category=category,
        search=search,
    )


@router.get("/expenses/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    try:
        return crud.get_expense(db, current_user.user_id, expense_id)
    except crud.ExpenseNotFoundError:
        raise _not_found()


@router.put("/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: str,
    expense: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    try:
        return crud.update_expense(db, current_user.user_id, expense_id, expense)
    except crud.ExpenseNotFoundError:
        raise _not_found()
    except crud.ExpenseValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors)


@router.delete("/expenses/{expense_id}", response_model=DeleteResponse)
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    try:
        crud.delete_expense(db, current_user.user_id, expense_id)
    except crud.ExpenseNotFoundError:
        raise _not_found()
    return DeleteResponse(message="Expense deleted successfully", id=expense_id)
