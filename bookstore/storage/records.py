"""
Record types shared by every storage backend.

``StoredUser`` and ``StoredBook`` are plain data classes so that the
auth core and the catalog query engine never depend on a particular
persistence engine.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


DEFAULT_BOOK_IMAGE = "https://via.placeholder.com/96x128"


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """User role governing endpoint access."""
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class Category(str, Enum):
    """Closed set of catalog categories."""
    FICTION = "Fiction"
    NON_FICTION = "Non-fiction"
    CHILDREN = "Children"
    SCIENCE = "Science"
    BIOGRAPHIES = "Biographies"
    SELF_HELP = "Self-help"


@dataclass
class StoredUser:
    """User record as held by a store."""

    id: str
    email: str
    password_hash: str
    role: Role = Role.CUSTOMER

    # Profile
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    bio: str = ""
    address: str = ""
    profile_picture: Optional[str] = None
    is_verified: bool = False

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Fields the generic update must never touch
    IMMUTABLE = frozenset({"id", "email", "password_hash", "role", "created_at", "updated_at"})

    def __post_init__(self):
        self.role = Role(self.role)

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        data = asdict(self)
        data["role"] = self.role.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StoredUser":
        """Build a record from a dictionary produced by ``to_dict``."""
        values = _known_fields(cls, data)
        _parse_timestamps(values)
        return cls(**values)


@dataclass
class StoredBook:
    """Book record as held by a store."""

    id: str
    title: str
    author: str
    category: Category
    price: float
    seller_id: str

    isbn: Optional[str] = None
    description: str = ""
    discount: float = 0.0
    image: str = DEFAULT_BOOK_IMAGE
    stock: int = 0
    rating: float = 0.0

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    IMMUTABLE = frozenset({"id", "seller_id", "created_at", "updated_at"})

    def __post_init__(self):
        self.category = Category(self.category)
        if self.price < 0:
            raise ValueError("price must be non-negative")

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        data = asdict(self)
        data["category"] = self.category.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StoredBook":
        """Build a record from a dictionary produced by ``to_dict``."""
        values = _known_fields(cls, data)
        _parse_timestamps(values)
        return cls(**values)


def _known_fields(cls, data: dict) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


def _parse_timestamps(values: dict) -> None:
    for key in ("created_at", "updated_at"):
        if isinstance(values.get(key), str):
            values[key] = datetime.fromisoformat(values[key])
