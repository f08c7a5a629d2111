"""
Tests the group service layer.
"""

import pytest

from groupadmin.core.uuid import uuid7
from groupadmin.database.repository import GroupRepository
from groupadmin.service import groups as groups_service
from groupadmin.service import user as user_service


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).create(
                {"name": "editors", "role": "EDITOR", "description": "Edit things"}
            )

            assert group.name == "EDITORS"
            assert group.role.name == "EDITOR"
            assert group.description == "Edit things"
            assert group.deleted_at is None

            GROUP_ID = group.group_id

    # Read by name, in either case
    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)

            lower = await groups.find_by_name("editors")
            upper = await groups.find_by_name("EDITORS")

            assert lower.group_id == GROUP_ID
            assert upper.group_id == GROUP_ID

            group = await groups.find_by_id(GROUP_ID)
            assert group.to_core().role == "EDITOR"

            group = await groups.find_one({"name": "Editors"})
            assert group.group_id == GROUP_ID

    async with session_manager.session() as conn:
        async with conn.begin():
            await group_service(conn, logger).delete(GROUP_ID)


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_short_name(session_manager, logger, group_service):
    with pytest.raises(groups_service.ValidationFailed) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).create(
                    {"name": "ed", "role": "EDITOR"}
                )

    assert e.value.status_code == 400
    assert [v.field for v in e.value.errors] == ["name"]


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_missing_fields(session_manager, logger, group_service):
    with pytest.raises(groups_service.ValidationFailed) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).create(
                    {"description": "x" * 513}
                )

    assert {v.field for v in e.value.errors} == {"name", "role", "description"}


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_unknown_role(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            TOTAL = await group_service(conn, logger).find_total()

    with pytest.raises(groups_service.RoleNotFound) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).create(
                    {"name": "ghosts", "role": "PHANTOM"}
                )

    assert e.value.status_code == 404

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            assert await groups.find_by_name("ghosts") is None
            assert await groups.find_total() == TOTAL


@pytest.mark.asyncio(loop_scope="session")
async def test_create_duplicate_name(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).create(
                {"name": "duplicates", "role": "VIEWER"}
            )
            GROUP_ID = group.group_id

    with pytest.raises(groups_service.DuplicateName) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).create(
                    {"name": "Duplicates", "role": "EDITOR"}
                )

    assert e.value.status_code == 409

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).find_by_id(GROUP_ID)
            assert group.role.name == "VIEWER"

            await group_service(conn, logger).delete(GROUP_ID)


@pytest.mark.asyncio(loop_scope="session")
async def test_update_group(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).create(
                {"name": "updaters", "role": "EDITOR", "description": "Before"}
            )
            GROUP_ID = group.group_id

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).update(
                {"name": "Updaters", "role": "viewer", "description": "After"}
            )

            assert group.group_id == GROUP_ID
            assert group.name == "UPDATERS"
            assert group.role.name == "VIEWER"
            assert group.description == "After"
            assert group.updated_at is not None

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).find_by_id(GROUP_ID)
            assert group.role.name == "VIEWER"
            assert group.description == "After"

    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).update(
                    {"name": "nobody_here", "role": "VIEWER"}
                )

    with pytest.raises(groups_service.RoleNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).update(
                    {"name": "updaters", "role": "PHANTOM"}
                )

    with pytest.raises(groups_service.ValidationFailed):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).update(
                    {"name": "updaters", "role": "ed"}
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            await group_service(conn, logger).delete(GROUP_ID)


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_group_with_dependents(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).create(
                {"name": "dependents", "role": "EDITOR"}
            )
            GROUP_ID = group.group_id

            await user_service.create(
                user_name="dependent_user",
                email="dependent@livelyplanet.test",
                group_name="dependents",
                conn=conn,
                log=logger,
            )

    with pytest.raises(groups_service.HasDependents) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).delete_by_name("DEPENDENTS")

    assert e.value.status_code == 422

    with pytest.raises(groups_service.HasDependents):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).delete(GROUP_ID)

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await group_service(conn, logger).find_by_id(GROUP_ID)
            assert group is not None
            assert not group.is_deleted

            # The guarded update refuses on its own, too
            assert await GroupRepository(conn).soft_delete(group_id=GROUP_ID) == 0

    # Once the user is gone the group may go
    async with session_manager.session() as conn:
        async with conn.begin():
            await user_service.delete(user_name="dependent_user", conn=conn, log=logger)

    async with session_manager.session() as conn:
        async with conn.begin():
            await group_service(conn, logger).delete_by_name("dependents")

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)

            assert await groups.find_by_id(GROUP_ID) is None
            assert await groups.find_by_name("dependents") is None

            group = await groups.find_by_id(GROUP_ID, with_deleted=True)
            assert group is not None
            assert group.is_deleted


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_group(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            group = await groups.create({"name": "short_lived", "role": "VIEWER"})
            GROUP_ID = group.group_id
            TOTAL = await groups.find_total()

    async with session_manager.session() as conn:
        async with conn.begin():
            await group_service(conn, logger).delete(GROUP_ID)

    async with session_manager.session() as conn:
        async with conn.begin():
            assert await group_service(conn, logger).find_total() == TOTAL - 1

    # Already deleted
    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).delete(GROUP_ID)

    # Name is still taken by the soft-deleted row
    with pytest.raises(groups_service.DuplicateName):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).create(
                    {"name": "short_lived", "role": "VIEWER"}
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_unknown_group(session_manager, logger, group_service):
    with pytest.raises(groups_service.GroupNotFound) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).delete(uuid7())

    assert e.value.status_code == 404

    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).delete_by_name("never_existed")


@pytest.mark.asyncio(loop_scope="session")
async def test_find_all(session_manager, logger, group_service):
    names = ["page_alpha", "page_bravo", "page_charlie"]

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            GROUP_IDS = [
                (await groups.create({"name": name, "role": "VIEWER"})).group_id
                for name in names
            ]

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            total = await groups.find_total()

            page, page_total = await groups.find_all(
                offset=0, limit=2, sort_direction="desc", sort_field="name"
            )

            assert len(page) == 2
            assert page_total == total
            assert [g.name for g in page] == sorted(
                [g.name for g in page], reverse=True
            )

            everything, _ = await groups.find_all(
                offset=0, limit=100, sort_direction="Asc", sort_field="name"
            )
            listed = [g.name for g in everything]
            assert listed == sorted(listed)
            assert {"PAGE_ALPHA", "PAGE_BRAVO", "PAGE_CHARLIE"} <= set(listed)

            rest, _ = await groups.find_all(
                offset=1, limit=100, sort_direction="ASC", sort_field="name"
            )
            assert [g.name for g in rest] == listed[1:]

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            for group_id in GROUP_IDS:
                await groups.delete(group_id)


@pytest.mark.asyncio(loop_scope="session")
@pytest.mark.parametrize(
    "offset,limit,sort_direction,sort_field",
    [
        (0, 10, "ASC", "password"),
        (0, 10, "sideways", "name"),
        (-1, 10, "ASC", "name"),
        (0, 0, "ASC", "name"),
    ],
)
async def test_find_all_invalid(
    session_manager, logger, group_service, offset, limit, sort_direction, sort_field
):
    with pytest.raises(groups_service.ValidationFailed):
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).find_all(
                    offset=offset,
                    limit=limit,
                    sort_direction=sort_direction,
                    sort_field=sort_field,
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_find_one_unknown_field(session_manager, logger, group_service):
    with pytest.raises(groups_service.ValidationFailed) as e:
        async with session_manager.session() as conn:
            async with conn.begin():
                await group_service(conn, logger).find_one({"password": "hunter2"})

    assert e.value.errors[0].field == "password"

    async with session_manager.session() as conn:
        async with conn.begin():
            assert await group_service(conn, logger).find_one({"name": "nope"}) is None


@pytest.mark.asyncio(loop_scope="session")
async def test_find_one_several_matches(session_manager, logger, group_service):
    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            first = await groups.create(
                {"name": "shared_one", "role": "VIEWER", "description": "shared"}
            )
            second = await groups.create(
                {"name": "shared_two", "role": "VIEWER", "description": "shared"}
            )
            GROUP_IDS = [first.group_id, second.group_id]
            ROLE_ID = first.role_id

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)

            group = await groups.find_one({"role_id": ROLE_ID})
            assert group is not None
            assert group.role_id == ROLE_ID

            group = await groups.find_one({"description": "shared"})
            assert group is not None
            assert group.group_id == min(GROUP_IDS)

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            for group_id in GROUP_IDS:
                await groups.delete(group_id)


@pytest.mark.asyncio(loop_scope="session")
async def test_find_all_ties_ordered_by_id(session_manager, logger, group_service):
    names = ["tied_one", "tied_two", "tied_three"]

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            GROUP_IDS = [
                (
                    await groups.create(
                        {"name": name, "role": "VIEWER", "description": "zz tied"}
                    )
                ).group_id
                for name in names
            ]

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)

            everything, _ = await groups.find_all(
                offset=0, limit=100, sort_direction="ASC", sort_field="description"
            )
            tied = [g.group_id for g in everything if g.description == "zz tied"]
            assert tied == sorted(GROUP_IDS)

            start = [g.group_id for g in everything].index(tied[0])
            paged = []
            for offset in range(start, start + 3):
                page, _ = await groups.find_all(
                    offset=offset,
                    limit=1,
                    sort_direction="ASC",
                    sort_field="description",
                )
                paged.append(page[0].group_id)

            assert paged == tied

    async with session_manager.session() as conn:
        async with conn.begin():
            groups = group_service(conn, logger)
            for group_id in GROUP_IDS:
                await groups.delete(group_id)
