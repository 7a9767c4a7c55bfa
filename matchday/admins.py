"""
Admin registry.

Admins listed in configuration (ADMIN_IDS / SUPER_ADMIN_ID) always count as
admins. Others are added and removed at runtime by the super admin.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from matchday.config import config
from matchday.errors import PermissionDenied
from matchday.models import Admin

logger = logging.getLogger(__name__)


def add_admin(
    db: Session,
    user_id: int,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    is_super_admin: bool = False,
    added_by: Optional[int] = None
) -> Admin:
    """Add an admin, or reactivate a previously removed one."""
    admin = db.query(Admin).filter(Admin.user_id == user_id).first()
    if admin is None:
        admin = Admin(
            user_id=user_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            is_super_admin=is_super_admin,
            added_by=added_by
        )
        db.add(admin)
    else:
        admin.is_active = True

    db.commit()
    db.refresh(admin)
    logger.info("User %s is now an admin (added by %s)", user_id, added_by)
    return admin


def remove_admin(db: Session, user_id: int, removed_by: Optional[int] = None) -> bool:
    """
    Deactivate an admin.

    Returns:
        True if an active admin row was deactivated
    """
    changed = db.query(Admin).filter(
        Admin.user_id == user_id,
        Admin.is_active == True
    ).update({Admin.is_active: False}, synchronize_session=False)
    db.commit()

    if changed:
        logger.info("User %s is no longer an admin (removed by %s)", user_id, removed_by)
    return bool(changed)


def is_admin(db: Session, user_id: int) -> bool:
    if user_id in config.ADMIN_IDS or user_id == config.SUPER_ADMIN_ID:
        return True
    return db.query(Admin).filter(
        Admin.user_id == user_id,
        Admin.is_active == True
    ).first() is not None


def is_super_admin(db: Session, user_id: int) -> bool:
    if config.SUPER_ADMIN_ID is not None and user_id == config.SUPER_ADMIN_ID:
        return True
    return db.query(Admin).filter(
        Admin.user_id == user_id,
        Admin.is_super_admin == True,
        Admin.is_active == True
    ).first() is not None


def require_admin(db: Session, user_id: int):
    """Raise PermissionDenied unless user_id is an admin."""
    if user_id is None or not is_admin(db, user_id):
        raise PermissionDenied(user_id)


def require_super_admin(db: Session, user_id: int):
    """Raise PermissionDenied unless user_id is the super admin."""
    if user_id is None or not is_super_admin(db, user_id):
        raise PermissionDenied(user_id)


def get_admins(db: Session) -> List[Admin]:
    """Active admins, super admins first."""
    return db.query(Admin).filter(
        Admin.is_active == True
    ).order_by(Admin.is_super_admin.desc(), Admin.added_at.asc()).all()


def bootstrap_admins(db: Session) -> List[Admin]:
    """Make sure every admin from configuration has a row."""
    created = []
    ids = list(config.ADMIN_IDS)
    if config.SUPER_ADMIN_ID is not None and config.SUPER_ADMIN_ID not in ids:
        ids.append(config.SUPER_ADMIN_ID)

    for user_id in ids:
        if db.query(Admin).filter(Admin.user_id == user_id).first():
            continue
        admin = Admin(user_id=user_id, is_super_admin=(user_id == config.SUPER_ADMIN_ID))
        db.add(admin)
        created.append(admin)

    if created:
        db.commit()
        logger.info("Registered %d admin(s) from configuration", len(created))
    elif not ids:
        logger.warning("ADMIN_IDS is not configured; only admins stored in the database can act")
    return created
