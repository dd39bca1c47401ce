from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from apps.cart.cart import Cart
from apps.users.services import current_user

if TYPE_CHECKING:
    from apps.users.models import User


@dataclass(frozen=True)
class RequestContext:
    """Everything a service needs to know about the caller."""

    session_key: Optional[str]
    current_user: Optional[User]
    cart: Cart

    @property
    def is_admin(self) -> bool:
        return self.current_user is not None and self.current_user.is_admin

    @classmethod
    def from_request(cls, request) -> RequestContext:
        session = request.session
        return cls(
            session_key=session.session_key,
            current_user=current_user(request),
            cart=Cart(session),
        )
