# Overview: Service-layer operations for users; registration into an existing organization.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import DuplicateEmailError, ValidationError
from ..identity import Identity
from ..models import User
from ..repositories import UserRepository
from ..validation import RegisterUserDto
from .auth_service import hash_password
from .concurrency import transaction


class UserService:
    def __init__(self, session, users: UserRepository, *, bcrypt_rounds: int = 12):
        self.session = session
        self.users = users
        self.bcrypt_rounds = bcrypt_rounds

    def register_user(self, dto: RegisterUserDto, identity: Identity | None) -> User:
        """
        Create a user in one transaction.

        MULTI-TENANT: A scoped caller always registers into its own
        organization; the DTO's organization_id only counts for trusted
        (identity=None) calls such as organization registration. The role
        must belong to that same organization (checked by the write guard).

        Email uniqueness is global and checked without a tenant scope, so
        an address taken in another organization is still a duplicate. Addresses
        are stored lowercased, matching how login looks them up.
        """
        organization_id = identity.organization_id if identity is not None else dto.organization_id
        if organization_id is None:
            raise ValidationError("organization_id is required")
        email = dto.email.strip().lower()

        with transaction(self.session):
            if self.users.email_exists(email):
                raise DuplicateEmailError()

            try:
                return self.users.insert_one(
                    entity={
                        "email": email,
                        "role_id": dto.role_id,
                        "password": hash_password(dto.password, self.bcrypt_rounds),
                        "organization_id": organization_id,
                        "first_name": dto.first_name,
                        "last_name": dto.last_name,
                    },
                    identity=identity,
                )
            except IntegrityError as exc:
                # Lost a race with a concurrent registration of the same email.
                if "email" in str(exc.orig).lower():
                    raise DuplicateEmailError() from exc
                raise
