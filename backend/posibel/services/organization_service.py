# Overview: Service-layer operations for organizations; tenant onboarding.

from __future__ import annotations

from ..models import Organization
from ..policies import ADMIN_ROLE_NAME, ADMIN_ROLE_POLICIES
from ..repositories import Join, OrganizationRelation, OrganizationRepository, RoleRepository
from ..validation import RegisterOrganizationDto, RegisterUserDto
from .concurrency import transaction
from .user_service import UserService


class OrganizationService:
    def __init__(
        self,
        session,
        organizations: OrganizationRepository,
        roles: RoleRepository,
        users: UserService,
    ):
        self.session = session
        self.organizations = organizations
        self.roles = roles
        self.users = users

    def register_organization(self, dto: RegisterOrganizationDto) -> Organization:
        """
        Onboard a new tenant: organization, admin role, first user.

        All three rows are written in one transaction; any failure (duplicate
        email included) leaves none of them behind. The writes run as trusted
        calls because no tenant exists yet to scope them by.

        Returns the organization re-read with its users and roles.
        """
        with transaction(self.session):
            organization = self.organizations.insert_one(
                entity={"name": dto.organization_name}, identity=None
            )
            role = self.roles.insert_one(
                entity={
                    "name": ADMIN_ROLE_NAME,
                    "organization_id": organization.id,
                    "policies": list(ADMIN_ROLE_POLICIES),
                },
                identity=None,
            )
            self.users.register_user(
                RegisterUserDto(
                    email=dto.email,
                    password=dto.password,
                    confirmation_password=dto.confirmation_password,
                    first_name=dto.first_name,
                    last_name=dto.last_name,
                    organization_id=organization.id,
                    role_id=role.id,
                ),
                identity=None,
            )
            organization_id = organization.id

        return self.organizations.get_one(
            identity=None,
            where={"id": organization_id},
            joins=[Join(OrganizationRelation.USERS), Join(OrganizationRelation.ROLES)],
        )
