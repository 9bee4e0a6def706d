"""
Wallet API request and response models.

Dataclasses for structured request descriptors and the few response shapes
the client itself interprets. Endpoint payloads are otherwise passed through
as plain JSON values.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, Mapping


@dataclass(frozen=True)
class RequestDescriptor:
    """
    An outbound call as supplied by a caller.

    Immutable: the pipeline derives retried copies through with_bearer()
    and never modifies the caller's instance.
    """
    endpoint: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None
    params: Optional[Mapping[str, Any]] = None
    with_credentials: bool = True
    # False: no bearer header and no renewal on 401 (e.g. registration)
    authenticate: bool = True

    def with_bearer(self, token: str) -> "RequestDescriptor":
        """Return a copy whose headers carry the given bearer token."""
        headers = {
            name: value
            for name, value in self.headers.items()
            if name.lower() != "authorization"
        }
        headers["Authorization"] = f"Bearer {token}"
        return replace(self, headers=headers)


@dataclass
class TokenResponse:
    """Access token returned by login, register and renewal endpoints."""
    access_token: str
    token_type: str = "bearer"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenResponse":
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            raise ValueError("Response does not contain an access_token")
        return cls(
            access_token=token,
            token_type=data.get("token_type", "bearer"),
        )


@dataclass
class UserProfile:
    """Cached identity snapshot of the logged-in user."""
    id: Optional[int]
    name: str
    email: str
    role: str  # 'admin', 'cliente', 'revendedor'
    phone: Optional[str] = None
    balance: float = 0.0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", ""),
            phone=data.get("phone"),
            balance=float(data.get("balance") or 0),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "email": self.email,
                "role": self.role,
                "phone": self.phone,
                "balance": self.balance,
            }
        )
        return data

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
