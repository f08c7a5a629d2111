"""
Service layer for groups.

Every failure leaves this module as a `GroupServiceError`; errors from the
database are logged and re-raised as `InternalFailure`.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from structlog.typing import FilteringBoundLogger

from groupadmin.core.group import (
    GroupCreateRequest,
    GroupPageRequest,
    GroupUpdateRequest,
)
from groupadmin.core.uuid import UUID
from groupadmin.core.validation import Violation, parse, validate
from groupadmin.database.meta import Group, Role
from groupadmin.database.repository import GroupRepository

from .roles import RoleLookup

# Columns that `find_one` accepts as filters.
FILTERABLE_FIELDS = (
    "group_id",
    "name",
    "description",
    "role_id",
    "created_at",
    "updated_at",
)

UNIQUE_VIOLATION = "23505"


class GroupServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str, errors: list[Violation] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailed(GroupServiceError):
    status_code = 400


class RoleNotFound(GroupServiceError):
    status_code = 404


class GroupNotFound(GroupServiceError):
    status_code = 404


class DuplicateName(GroupServiceError):
    status_code = 409


class HasDependents(GroupServiceError):
    status_code = 422


class InternalFailure(GroupServiceError):
    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)


def canonical_group_name(name: str) -> str:
    return name.strip().upper()


def is_unique_violation(error: IntegrityError) -> bool:
    """
    Whether `error` comes from a unique constraint, for either postgres
    (SQLSTATE 23505) or sqlite.
    """
    original = error.orig
    code = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(original)


class GroupService:
    """
    Group administration.

    Parameters
    ----------
    repository: GroupRepository
        Persistence for groups.
    roles: RoleLookup
        Resolves role names to roles.
    log: FilteringBoundLogger
        Logger instance.
    """

    def __init__(
        self,
        repository: GroupRepository,
        roles: RoleLookup,
        log: FilteringBoundLogger,
    ):
        self.repository = repository
        self.roles = roles
        self.log = log

    async def _internal_failure(
        self, log: FilteringBoundLogger, event: str
    ) -> InternalFailure:
        # Must be awaited inside the `except` block so the traceback is logged.
        await log.aexception(event)
        return InternalFailure()

    async def _check(
        self, data: Any, rules: type, log: FilteringBoundLogger, event: str
    ):
        violations = validate(data, rules)

        if violations:
            await log.ainfo(event, errors=[v.model_dump() for v in violations])
            raise ValidationFailed("Input data validation failed", errors=violations)

        return parse(data, rules)

    async def _resolve_role(
        self, role_name: str, log: FilteringBoundLogger, operation: str
    ) -> Role:
        try:
            role = await self.roles.read_by_name(role_name)
        except Exception:
            raise await self._internal_failure(log, f"group.{operation}.role_lookup_failed")

        if role is None:
            await log.ainfo(f"group.{operation}.role_not_found")
            raise RoleNotFound(f"Role {role_name} not found")

        return role

    async def create(self, data: Any) -> Group:
        """
        Create a new group.

        Parameters
        ----------
        data: Any
            A mapping or object with `name`, `role` and, optionally,
            `description`.

        Raises
        ------
        ValidationFailed
            If `data` breaks the group rules.
        RoleNotFound
            If the role does not exist.
        DuplicateName
            If a group with this name already exists.
        InternalFailure
            On any other database error.
        """
        log = self.log.bind(operation="group.create")

        request = await self._check(
            data, GroupCreateRequest, log, "group.create.invalid"
        )

        name = canonical_group_name(request.name)
        log = log.bind(group_name=name, role_name=request.role)

        role = await self._resolve_role(request.role, log, "create")

        group = Group(
            name=name,
            description=request.description,
            role_id=role.role_id,
            role=role,
        )

        try:
            group = await self.repository.save(group)
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise await self._internal_failure(log, "group.create.failed")
            log = log.bind(error=str(e.orig))
            await log.ainfo("group.exists")
            raise DuplicateName(f"Group name {name} already exists")
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.create.failed")

        await log.ainfo("group.created", group_id=group.group_id)

        return group

    async def update(self, data: Any) -> Group:
        """
        Change the description and role of the group named in `data`.

        Raises
        ------
        ValidationFailed
            If `data` breaks the group rules.
        GroupNotFound
            If no active group has this name.
        RoleNotFound
            If the role does not exist.
        InternalFailure
            On any database error.
        """
        log = self.log.bind(operation="group.update")

        request = await self._check(
            data, GroupUpdateRequest, log, "group.update.invalid"
        )

        name = canonical_group_name(request.name)
        log = log.bind(group_name=name, role_name=request.role)

        try:
            group = await self.repository.find_one(name=name)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.update.lookup_failed")

        if group is None:
            await log.ainfo("group.update.not_found")
            raise GroupNotFound(f"Update group failed, {name} not found")

        role = await self._resolve_role(request.role, log, "update")

        group.description = request.description
        group.role_id = role.role_id
        group.role = role
        group.updated_at = datetime.now(tz=timezone.utc)

        try:
            group = await self.repository.save(group)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.update.failed")

        await log.ainfo("group.updated", group_id=group.group_id)

        return group

    async def _delete(self, label: str, log: FilteringBoundLogger, **filters):
        try:
            dependents = await self.repository.count_dependents(**filters)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.delete.count_failed")

        if dependents > 0:
            await log.awarn("group.delete.has_dependents", dependents=dependents)
            raise HasDependents(
                f"Group {label} could not be deleted, it has {dependents} active users"
            )

        try:
            affected = await self.repository.soft_delete(**filters)

            # The update refuses groups with active users, so a user added
            # since the count shows up here as zero rows affected.
            if not affected:
                dependents = await self.repository.count_dependents(**filters)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.delete.failed")

        if not affected and dependents > 0:
            await log.awarn("group.delete.has_dependents", dependents=dependents)
            raise HasDependents(
                f"Group {label} could not be deleted, it has {dependents} active users"
            )

        if not affected:
            await log.ainfo("group.delete.not_found")
            raise GroupNotFound(f"Group {label} not found")

        await log.ainfo("group.deleted")

    async def delete(self, group_id: UUID) -> None:
        """
        Soft-delete a group by its ID.

        Raises
        ------
        HasDependents
            If active users belong to the group.
        GroupNotFound
            If no active group has this ID.
        InternalFailure
            On any database error.
        """
        log = self.log.bind(operation="group.delete", group_id=group_id)
        await self._delete(str(group_id), log, group_id=group_id)

    async def delete_by_name(self, name: str) -> None:
        """
        Soft-delete a group by its (case-insensitive) name. Raises as `delete`.
        """
        name = canonical_group_name(name)
        log = self.log.bind(operation="group.delete_by_name", group_name=name)
        await self._delete(name, log, name=name)

    async def find_by_id(
        self, group_id: UUID, with_deleted: bool = False
    ) -> Group | None:
        log = self.log.bind(operation="group.find_by_id", group_id=group_id)

        try:
            group = await self.repository.find_one(
                with_deleted=with_deleted, group_id=group_id
            )
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.find.failed")

        await log.adebug("group.found" if group else "group.not_found")
        return group

    async def find_by_name(self, name: str) -> Group | None:
        name = canonical_group_name(name)
        log = self.log.bind(operation="group.find_by_name", group_name=name)

        try:
            group = await self.repository.find_one(name=name)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.find.failed")

        await log.adebug("group.found" if group else "group.not_found")
        return group

    async def find_one(self, filters: dict[str, Any]) -> Group | None:
        """
        Find the active group matching every column in `filters`.

        Raises
        ------
        ValidationFailed
            If `filters` names a column that cannot be filtered on.
        InternalFailure
            On any database error.
        """
        log = self.log.bind(operation="group.find_one", filters=sorted(filters))

        violations = [
            Violation(field=key, message="Unknown filter field")
            for key in filters
            if key not in FILTERABLE_FIELDS
        ]

        if violations:
            await log.ainfo("group.find_one.invalid")
            raise ValidationFailed("Invalid filter", errors=violations)

        filters = dict(filters)

        if isinstance(filters.get("name"), str):
            filters["name"] = canonical_group_name(filters["name"])

        try:
            group = await self.repository.find_one(**filters)
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.find.failed")

        await log.adebug("group.found" if group else "group.not_found")
        return group

    async def find_all(
        self,
        offset: int = 0,
        limit: int = 20,
        sort_direction: str = "ASC",
        sort_field: str = "name",
    ) -> tuple[list[Group], int]:
        """
        Get one page of active groups.

        Parameters
        ----------
        offset: int
            Number of groups to skip.
        limit: int
            Maximum number of groups to return.
        sort_direction: str
            `asc` or `desc`, in any case.
        sort_field: str
            One of `groupadmin.core.group.SORTABLE_FIELDS`.

        Returns
        -------
        tuple[list[Group], int]
            The page, and the number of active groups in total.

        Raises
        ------
        ValidationFailed
            For a negative offset, a non-positive limit, or an unknown sort
            direction or field.
        InternalFailure
            On any database error.
        """
        log = self.log.bind(
            operation="group.find_all",
            offset=offset,
            limit=limit,
            sort_direction=sort_direction,
            sort_field=sort_field,
        )

        page = await self._check(
            dict(
                offset=offset,
                limit=limit,
                sort_direction=sort_direction,
                sort_field=sort_field,
            ),
            GroupPageRequest,
            log,
            "group.find_all.invalid",
        )

        column = getattr(Group, page.sort_field)
        order_by = column.asc() if page.sort_direction == "ASC" else column.desc()

        try:
            groups, total = await self.repository.find_and_count(
                offset=page.offset, limit=page.limit, order_by=order_by
            )
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.find_all.failed")

        await log.adebug("group.listed", number_of_groups=len(groups), total=total)

        return groups, total

    async def find_total(self) -> int:
        log = self.log.bind(operation="group.find_total")

        try:
            return await self.repository.count()
        except SQLAlchemyError:
            raise await self._internal_failure(log, "group.count.failed")
