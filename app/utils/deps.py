from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.schemas.token import TokenPayload
from app.schemas.user import User as UserSchema, UserContext
from app.services.email import NotificationSender, email_sender

http_bearer = HTTPBearer(auto_error=False)

def get_current_user_with_context(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> UserContext:
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")
    except ValidationError:
        raise UnauthorizedError("Invalid token payload")

    user = None
    if token_data.user_id is not None:
        user = user_crud.get(db, id=token_data.user_id)
    elif token_data.sub:
        user = user_crud.get_by_email(db, email=token_data.sub)

    if not user:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError("User account is inactive")

    return UserContext(user=UserSchema.model_validate(user))

def get_notification_sender() -> NotificationSender:
    return email_sender
