"""User and password hash models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .resource import Resource


class UserType(str, Enum):
    """Ways a user can authenticate."""
    EMAIL = "email"
    PHONE = "phone"
    ANONYMOUS = "anonymous"


class HashAlgorithm(str, Enum):
    """Password hash formats that can be migrated without a reset."""
    SCRYPT = "scrypt"
    SCRYPT_MODIFIED = "scryptModified"
    BCRYPT = "bcrypt"
    ARGON2 = "argon2"
    SHA256 = "sha256"
    PHPASS = "phpass"


@dataclass
class Hash:
    """
    A password hash exactly as stored by the origin backend.

    ``hash`` and ``salt`` hold the encoded values verbatim; they are never
    decoded, re-hashed or normalised. The cost parameters only apply to
    SCRYPT, the separator and signing key only to SCRYPT_MODIFIED.
    """
    hash: str
    algorithm: HashAlgorithm = HashAlgorithm.SHA256
    salt: Optional[str] = None
    separator: Optional[str] = None
    signing_key: Optional[str] = None
    cpu: int = 8
    memory: int = 14
    parallel: int = 1
    key_length: int = 64

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {
            "algorithm": self.algorithm.value,
            "hash": self.hash,
            "salt": self.salt,
        }
        if self.algorithm == HashAlgorithm.SCRYPT:
            result.update({
                "cpu": self.cpu,
                "memory": self.memory,
                "parallel": self.parallel,
                "keyLength": self.key_length,
            })
        elif self.algorithm == HashAlgorithm.SCRYPT_MODIFIED:
            result.update({
                "separator": self.separator,
                "signingKey": self.signing_key,
            })
        return result


def calculate_user_types(password_hash: Optional[Hash], phone: str) -> Set[UserType]:
    """Derive a user's authentication types from its hash and phone number."""
    has_hash = password_hash is not None and bool(password_hash.hash)

    if not has_hash and not phone:
        return {UserType.ANONYMOUS}

    types = set()
    if has_hash:
        types.add(UserType.EMAIL)
    if phone:
        types.add(UserType.PHONE)
    return types


@dataclass
class User(Resource):
    """A user of the identity service."""
    id: str
    email: str = ""
    name: str = ""
    password_hash: Optional[Hash] = None
    phone: str = ""
    types: Set[UserType] = field(default_factory=set)
    username: str = ""
    email_verified: bool = False
    phone_verified: bool = False
    disabled: bool = False
    memberships: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.types:
            self.types = calculate_user_types(self.password_hash, self.phone)

    @classmethod
    def resource_name(cls) -> str:
        return "User"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "passwordHash": self.password_hash.to_dict() if self.password_hash else None,
            "phone": self.phone,
            "types": sorted(t.value for t in self.types),
            "username": self.username,
            "emailVerified": self.email_verified,
            "phoneVerified": self.phone_verified,
            "disabled": self.disabled,
            "memberships": self.memberships,
        }
