# storefront/api/deps.py
from fastapi import Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import Unauthorized
from storefront.repos.user_repo import UserRepo


def get_current_user(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
) -> UserModel:
    user = UserRepo(db).get_user(user_id)
    if not user:
        raise Unauthorized("User not authenticated")
    return user
