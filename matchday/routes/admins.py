"""
Admin management routes. Changes require the super admin.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import admins
from matchday.schemas import AdminCreate, AdminResponse

router = APIRouter()


@router.get("/", response_model=List[AdminResponse])
async def list_admins(db: Session = Depends(get_db)):
    return admins.get_admins(db)


@router.post("/", response_model=AdminResponse)
async def add_admin(payload: AdminCreate, db: Session = Depends(get_db)):
    admins.require_super_admin(db, payload.added_by)
    return admins.add_admin(
        db,
        user_id=payload.user_id,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
        added_by=payload.added_by
    )


@router.delete("/{user_id}", status_code=204)
async def remove_admin(user_id: int, removed_by: int, db: Session = Depends(get_db)):
    admins.require_super_admin(db, removed_by)
    if not admins.remove_admin(db, user_id, removed_by=removed_by):
        raise HTTPException(status_code=404, detail=f"User {user_id} is not an admin")
