"""Tests for inviting, removing, and sharing tasks with collaborators."""

import pytest

from app.errors import NotFoundError, StoreOperationError, ValidationError


async def _create_pair(user_service):
    await user_service.upsert_identity("u1", "e1@x.com", "One", "https://img/1", "google")
    await user_service.upsert_identity("u2", "e2@x.com", "Two", "https://img/2", "google")


def _links(doc):
    return {link["email"]: link for link in doc["collaboration"]}


@pytest.mark.asyncio
class TestInvite:
    async def test_invite_links_both_documents(self, user_service, collaboration_service, store):
        await _create_pair(user_service)

        await collaboration_service.invite("u1", "e2@x.com")

        u1_links = _links(await store.find_by_id("u1"))
        u2_links = _links(await store.find_by_id("u2"))
        assert u1_links == {
            "e2@x.com": {"email": "e2@x.com", "name": "Two", "avatar": "https://img/2", "sharedTasks": []}
        }
        assert u2_links == {
            "e1@x.com": {"email": "e1@x.com", "name": "One", "avatar": "https://img/1", "sharedTasks": []}
        }

    async def test_invite_twice_keeps_one_link(self, user_service, collaboration_service, store):
        await _create_pair(user_service)

        await collaboration_service.invite("u1", "e2@x.com")
        await collaboration_service.update_shared_tasks("u1", "e2@x.com", [{"title": "shared"}])
        inviter_result, invitee_result = await collaboration_service.invite("u1", "E2@x.com")

        assert inviter_result.modified_count == 0
        assert invitee_result.modified_count == 0
        u1 = await store.find_by_id("u1")
        assert len(u1["collaboration"]) == 1
        assert u1["collaboration"][0]["sharedTasks"] == [{"title": "shared"}]
        assert len((await store.find_by_id("u2"))["collaboration"]) == 1

    async def test_invitee_matched_ignoring_case_and_whitespace(self, user_service, collaboration_service, store):
        await user_service.upsert_identity("u1", "e1@x.com", "One")
        await user_service.upsert_identity("u3", "Foo@Bar.com", "Foo")

        await collaboration_service.invite("u1", "foo@bar.com ")

        # stored as the invitee spelled it
        assert list(_links(await store.find_by_id("u1"))) == ["Foo@Bar.com"]
        assert list(_links(await store.find_by_id("u3"))) == ["e1@x.com"]

    async def test_hints_fill_missing_invitee_profile(self, user_service, collaboration_service, store):
        await user_service.upsert_identity("u1", "e1@x.com", "One")
        await user_service.upsert_identity("u2", "e2@x.com")

        await collaboration_service.invite("u1", "e2@x.com", "Hinted Name", "https://img/hint")

        link = _links(await store.find_by_id("u1"))["e2@x.com"]
        assert link["name"] == "Hinted Name"
        assert link["avatar"] == "https://img/hint"

    async def test_stored_profile_wins_over_hints(self, user_service, collaboration_service, store):
        await _create_pair(user_service)

        await collaboration_service.invite("u1", "e2@x.com", "Hinted Name", "https://img/hint")

        link = _links(await store.find_by_id("u1"))["e2@x.com"]
        assert link["name"] == "Two"
        assert link["avatar"] == "https://img/2"

    async def test_missing_inviter(self, user_service, collaboration_service):
        await user_service.upsert_identity("u2", "e2@x.com")

        with pytest.raises(NotFoundError) as exc_info:
            await collaboration_service.invite("ghost", "e2@x.com")
        assert exc_info.value.message == "Inviter not found"

    async def test_missing_invitee(self, user_service, collaboration_service, store):
        await user_service.upsert_identity("u1", "e1@x.com")

        with pytest.raises(NotFoundError) as exc_info:
            await collaboration_service.invite("u1", "nobody@x.com")
        assert exc_info.value.message == "Invitee not found"
        assert (await store.find_by_id("u1"))["collaboration"] == []

    @pytest.mark.parametrize("inviter,email", [("", "e2@x.com"), ("u1", ""), (None, None)])
    async def test_invite_requires_fields(self, collaboration_service, inviter, email):
        with pytest.raises(ValidationError):
            await collaboration_service.invite(inviter, email)

    async def test_failed_mirror_write_leaves_one_sided_link(self, user_service, collaboration_service, store):
        await _create_pair(user_service)
        real_add = store.add_to_set_field

        async def fail_for_invitee(uid, field, record, key=None):
            if uid == "u2":
                raise StoreOperationError("write failed")
            return await real_add(uid, field, record, key=key)

        store.add_to_set_field = fail_for_invitee

        with pytest.raises(StoreOperationError):
            await collaboration_service.invite("u1", "e2@x.com")

        assert list(_links(await store.find_by_id("u1"))) == ["e2@x.com"]
        assert (await store.find_by_id("u2"))["collaboration"] == []


@pytest.mark.asyncio
class TestRemove:
    async def test_remove_is_one_sided(self, user_service, collaboration_service, store):
        await _create_pair(user_service)
        await collaboration_service.invite("u1", "e2@x.com")

        result = await collaboration_service.remove("u1", "e2@x.com")

        assert result.modified_count == 1
        assert (await store.find_by_id("u1"))["collaboration"] == []
        assert list(_links(await store.find_by_id("u2"))) == ["e1@x.com"]

    async def test_relink_after_remove(self, user_service, collaboration_service, store):
        await _create_pair(user_service)
        await collaboration_service.invite("u1", "e2@x.com")
        await collaboration_service.remove("u1", "e2@x.com")

        await collaboration_service.invite("u1", "e2@x.com")

        assert list(_links(await store.find_by_id("u1"))) == ["e2@x.com"]
        assert len((await store.find_by_id("u2"))["collaboration"]) == 1

    async def test_remove_requires_fields(self, collaboration_service):
        with pytest.raises(ValidationError):
            await collaboration_service.remove("u1", "")


@pytest.mark.asyncio
class TestUpdateSharedTasks:
    async def test_replaces_shared_tasks_on_own_side(self, user_service, collaboration_service, store):
        await _create_pair(user_service)
        await collaboration_service.invite("u1", "e2@x.com")
        await collaboration_service.update_shared_tasks("u1", "e2@x.com", [{"title": "a"}, {"title": "b"}])

        result = await collaboration_service.update_shared_tasks("u1", "e2@x.com", [{"title": "c"}])

        assert result.matched_count == 1
        assert _links(await store.find_by_id("u1"))["e2@x.com"]["sharedTasks"] == [{"title": "c"}]
        assert _links(await store.find_by_id("u2"))["e1@x.com"]["sharedTasks"] == []

    async def test_unknown_collaborator_is_a_no_op(self, user_service, collaboration_service, store):
        await _create_pair(user_service)
        await collaboration_service.invite("u1", "e2@x.com")
        before = await store.find_by_id("u1")

        result = await collaboration_service.update_shared_tasks("u1", "stranger@x.com", [{"title": "x"}])

        assert result.matched_count == 0
        assert await store.find_by_id("u1") == before

    @pytest.mark.parametrize("tasks", [None, {"title": "x"}, "x"])
    async def test_shared_tasks_must_be_list(self, collaboration_service, tasks):
        with pytest.raises(ValidationError):
            await collaboration_service.update_shared_tasks("u1", "e2@x.com", tasks)
