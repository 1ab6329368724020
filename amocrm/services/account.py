"""Account information, users and roles."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..errors import EmptyResponseError
from ..filters import RolesFilter, UsersFilter
from ..models import Account, Role, User
from .base import BaseService, parse_list_page

logger = logging.getLogger(__name__)


class AccountService(BaseService):
    async def get(self, with_: str = "") -> Optional[Account]:
        params = {"with": with_} if with_ else None
        return await self._get_one("/account", Account, params=params)

    async def get_with_users(self) -> Optional[Account]:
        return await self.get("users")

    async def get_with_users_and_groups(self) -> Optional[Account]:
        return await self.get("users,groups")


class UsersService(BaseService):
    async def get_by_id(self, user_id: int, with_: str = "") -> Optional[User]:
        params = {"with": with_} if with_ else None
        return await self._get_one(f"/users/{user_id}", User, params=params)

    async def list(self, filter: Optional[UsersFilter] = None) -> list[User]:
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json("/users", params=params)
        return parse_list_page(payload, "users", User).items

    async def create(self, user: User) -> User:
        created = await self.create_batch([user])
        if not created:
            raise EmptyResponseError("no user returned from API")
        return created[0]

    async def create_batch(self, users: Sequence[User]) -> list[User]:
        body = {"users": [user.to_payload() for user in users]}
        payload = await self.client.post_json("/users", body)
        return parse_list_page(payload, "users", User).items


class RolesService(BaseService):
    async def list(self, filter: Optional[RolesFilter] = None) -> list[Role]:
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json("/roles", params=params)
        return parse_list_page(payload, "roles", Role).items

    async def get(self, role_id: int, with_: str = "") -> Optional[Role]:
        params = {"with": with_} if with_ else None
        return await self._get_one(f"/roles/{role_id}", Role, params=params)

    async def create(self, role: Role) -> Role:
        created = await self.create_batch([role])
        if not created:
            raise EmptyResponseError("no role returned from API")
        return created[0]

    async def create_batch(self, roles: Sequence[Role]) -> list[Role]:
        payload = await self.client.post_json("/roles", [role.to_payload() for role in roles])
        return parse_list_page(payload, "roles", Role).items

    async def update(self, role_id: int, role: Role) -> Role:
        payload = await self.client.patch_json(f"/roles/{role_id}", role.to_payload())
        if payload is None:
            raise EmptyResponseError("no role returned from API")
        return Role.model_validate(payload)

    async def delete(self, role_id: int) -> None:
        await self.client.delete(f"/roles/{role_id}")
        logger.info(f"Deleted amoCRM role {role_id}")
