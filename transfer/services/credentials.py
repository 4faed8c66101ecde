"""Dispatch of password hashes onto hash-specific user creation calls."""

import logging
from typing import Any, Callable, Dict

from ..exceptions import InvalidCredential
from ..models.user import Hash, HashAlgorithm, User

logger = logging.getLogger(__name__)


class CredentialDispatcher:
    """
    Creates password users on the destination with their original hash.

    Exactly one creation call is made per user, chosen by the hash
    algorithm. Hash, salt and algorithm parameters are passed through
    verbatim so the user keeps logging in with the same password.

    ``users_api`` must expose ``create_bcrypt_user``, ``create_argon2_user``,
    ``create_sha_user``, ``create_phpass_user``, ``create_scrypt_user`` and
    ``create_scrypt_modified_user``.
    """

    def __init__(self, users_api: Any):
        self.users_api = users_api
        self._handlers: Dict[HashAlgorithm, Callable[[User, Hash], Any]] = {
            HashAlgorithm.BCRYPT: self._create_bcrypt,
            HashAlgorithm.ARGON2: self._create_argon2,
            HashAlgorithm.SHA256: self._create_sha256,
            HashAlgorithm.PHPASS: self._create_phpass,
            HashAlgorithm.SCRYPT: self._create_scrypt,
            HashAlgorithm.SCRYPT_MODIFIED: self._create_scrypt_modified,
        }

    def dispatch(self, user: User) -> Any:
        """
        Create ``user`` on the destination using its password hash.

        Raises:
            InvalidCredential: If the hash is missing or incomplete
        """
        password_hash = self.validate(user)
        handler = self._handlers.get(password_hash.algorithm)
        if handler is None:
            raise InvalidCredential(
                f"Unsupported hash algorithm: {password_hash.algorithm}",
                details={"user_id": user.id},
            )

        logger.debug(f"Creating {password_hash.algorithm.value} user {user.id}")
        return handler(user, password_hash)

    @staticmethod
    def validate(user: User) -> Hash:
        """Check the hash preconditions and return the hash."""
        password_hash = user.password_hash

        if password_hash is None or not password_hash.hash:
            raise InvalidCredential(
                f"User {user.id} password hash is empty",
                details={"user_id": user.id},
            )

        if password_hash.algorithm in (HashAlgorithm.SCRYPT, HashAlgorithm.SCRYPT_MODIFIED):
            if not password_hash.salt:
                raise InvalidCredential(
                    f"User {user.id} {password_hash.algorithm.value} hash has no salt",
                    details={"user_id": user.id},
                )

        if password_hash.algorithm == HashAlgorithm.SCRYPT_MODIFIED:
            if not password_hash.separator or not password_hash.signing_key:
                raise InvalidCredential(
                    f"User {user.id} scryptModified hash needs a separator and signing key",
                    details={"user_id": user.id},
                )

        return password_hash

    def _create_bcrypt(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_bcrypt_user(
            user.id, user.email, password_hash.hash, name=user.name or None
        )

    def _create_argon2(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_argon2_user(
            user.id, user.email, password_hash.hash, name=user.name or None
        )

    def _create_sha256(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_sha_user(
            user.id, user.email, password_hash.hash,
            password_version="sha256", name=user.name or None
        )

    def _create_phpass(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_phpass_user(
            user.id, user.email, password_hash.hash, name=user.name or None
        )

    def _create_scrypt(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_scrypt_user(
            user.id,
            user.email,
            password_hash.hash,
            password_hash.salt,
            password_hash.cpu,
            password_hash.memory,
            password_hash.parallel,
            password_hash.key_length,
            name=user.name or None,
        )

    def _create_scrypt_modified(self, user: User, password_hash: Hash) -> Any:
        return self.users_api.create_scrypt_modified_user(
            user.id,
            user.email,
            password_hash.hash,
            password_hash.salt,
            password_hash.separator,
            password_hash.signing_key,
            name=user.name or None,
        )
