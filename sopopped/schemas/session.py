# sopopped/schemas/session.py
import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["customer", "admin"]


class AuthSession(BaseModel):
    """
    Authenticated identity for one request.

    Obtained once per request through the `require_auth` dependency and
    passed explicitly into services; business logic never reads cookies
    or ambient state.
    """

    model_config = ConfigDict(frozen=True)

    session_id: uuid.UUID
    user_id: int
    user_name: str
    user_email: str
    user_role: Role = "customer"
    logged_in: bool = True

    @property
    def is_admin(self) -> bool:
        return self.user_role == "admin"


class SessionInfo(BaseModel):
    """
    Response of the session endpoint:

        {"logged_in": true, "user_id": 12, "username": "Ana Cruz"}
        {"logged_in": false}
    """

    logged_in: bool
    user_id: int | None = None
    username: str | None = None
