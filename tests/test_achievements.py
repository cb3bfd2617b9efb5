"""Tests for achievement retrieval, the fallback catalog and unlock tracking."""

from datetime import datetime
from typing import List

import pytest

from streak_engine.achievements import (
    ACHIEVEMENT_DEFINITIONS,
    AchievementCatalog,
    DefaultAchievementCatalog,
    filter_and_paginate,
)
from streak_engine.cache import StreakCaches
from streak_engine.models import Achievement, AchievementCategory
from streak_engine.service import StreakService

from conftest import NOW


def achievement_row(achievement_id: str, category: str, unlocked: bool = False) -> dict:
    return {
        "id": achievement_id,
        "name": f"Achievement {achievement_id}",
        "description": "",
        "category": category,
        "icon_name": "star",
        "is_unlocked": unlocked,
        "unlocked_at": datetime(2024, 3, 1, 12, 0) if unlocked else None,
        "required_value": None,
        "current_value": None,
        "reward": None,
    }


class TestGetUserAchievements:

    @pytest.mark.asyncio
    async def test_empty_user_returns_empty_without_io(self, service, store):
        assert await service.get_user_achievements("") == []
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_optimized_call_asks_for_full_set(self, service, store):
        store.achievement_rows["user1"] = [
            achievement_row("a", "tasks", unlocked=True),
            achievement_row("b", "streaks"),
        ]

        achievements = await service.get_user_achievements("user1")

        assert [a.id for a in achievements] == ["a", "b"]
        assert achievements[0].is_unlocked is True
        assert achievements[0].category is AchievementCategory.TASKS
        assert store.calls == ["fetch_achievements_page"]

    @pytest.mark.asyncio
    async def test_category_and_pages_served_from_one_cached_set(self, service, store):
        store.achievement_rows["user1"] = [
            achievement_row(str(i), "tasks" if i % 2 else "goals") for i in range(1, 8)
        ]

        tasks = await service.get_user_achievements("user1", AchievementCategory.TASKS)
        first_page = await service.get_user_achievements("user1", page=1, page_size=3)
        third_page = await service.get_user_achievements("user1", page=3, page_size=3)
        beyond = await service.get_user_achievements("user1", page=4, page_size=3)

        assert [a.id for a in tasks] == ["1", "3", "5", "7"]
        assert [a.id for a in first_page] == ["1", "2", "3"]
        assert [a.id for a in third_page] == ["7"]
        assert beyond == []
        assert store.count("fetch_achievements_page") == 1

    @pytest.mark.asyncio
    async def test_category_given_as_string(self, service, store):
        store.achievement_rows["user1"] = [achievement_row("a", "dedication"), achievement_row("b", "tasks")]

        result = await service.get_user_achievements("user1", "dedication")

        assert [a.id for a in result] == ["a"]
        assert await service.get_user_achievements("user1", "hobbies") == []

    @pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (-1, 5)])
    @pytest.mark.asyncio
    async def test_invalid_paging_returns_empty(self, service, store, page, page_size):
        assert await service.get_user_achievements("user1", page=page, page_size=page_size) == []
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_falls_back_to_default_catalog(self, service, store):
        store.errors["fetch_achievements_page"] = RuntimeError("function does not exist")
        store.unlocks["user1"] = {"1": datetime(2024, 3, 1, 9, 0)}
        store.progress["user1"] = {"tasks": 15, "streaks": 5, "goals": 1}

        achievements = await service.get_user_achievements("user1", page_size=50)

        assert len(achievements) == len(ACHIEVEMENT_DEFINITIONS)
        by_id = {a.id: a for a in achievements}
        assert by_id["1"].is_unlocked is True
        assert by_id["1"].unlocked_at == datetime(2024, 3, 1, 9, 0)
        assert by_id["3"].is_unlocked is False
        assert by_id["3"].current_value == 15
        assert by_id["5"].current_value == 5
        assert by_id["8"].current_value == 1
        assert by_id["10"].current_value is None
        assert by_id["12"].reward == "50 bonus reputation points"
        assert store.calls[0] == "fetch_achievements_page"

    @pytest.mark.asyncio
    async def test_catalog_is_replaceable(self, store, timer, cache_config, streak_config):
        class RemoteCatalog(AchievementCatalog):
            async def list_achievements(self, user_id, store) -> List[Achievement]:
                return [Achievement(id="remote", name="Remote", description="",
                                    category=AchievementCategory.GOALS)]

        service = StreakService(
            store,
            caches=StreakCaches.from_config(cache_config, timer=timer),
            catalog=RemoteCatalog(),
            config=streak_config,
            clock=lambda: NOW,
        )
        store.errors["fetch_achievements_page"] = RuntimeError("down")

        result = await service.get_user_achievements("user1")

        assert [a.id for a in result] == ["remote"]

    @pytest.mark.asyncio
    async def test_both_paths_failing_returns_empty_and_not_cached(self, service, store):
        store.errors["fetch_achievements_page"] = RuntimeError("down")
        store.errors["fetch_unlocked_achievements"] = ConnectionError("store unreachable")

        assert await service.get_user_achievements("user1") == []

        del store.errors["fetch_unlocked_achievements"]
        assert len(await service.get_user_achievements("user1", page_size=50)) == len(ACHIEVEMENT_DEFINITIONS)


class TestHasAchievement:

    @pytest.mark.asyncio
    async def test_uses_cached_set_when_present(self, service, store):
        store.achievement_rows["user1"] = [achievement_row("a", "tasks", unlocked=True), achievement_row("b", "tasks")]
        await service.get_user_achievements("user1")
        calls_before = store.count()

        assert await service.has_achievement("user1", "a") is True
        assert await service.has_achievement("user1", "b") is False
        assert store.count() == calls_before

    @pytest.mark.asyncio
    async def test_id_missing_from_cached_set_asks_store(self, service, store):
        store.achievement_rows["user1"] = [achievement_row("a", "tasks")]
        store.unlocks["user1"] = {"legacy": NOW}
        await service.get_user_achievements("user1")

        assert await service.has_achievement("user1", "legacy") is True
        assert await service.has_achievement("user1", "zzz") is False
        assert store.count("achievement_unlocked") == 2

        assert await service.unlock_achievement("user1", "legacy") is True
        assert store.count("insert_achievement_unlock") == 0

    @pytest.mark.asyncio
    async def test_cache_miss_uses_direct_lookup(self, service, store):
        store.unlocks["user1"] = {"4": NOW}

        assert await service.has_achievement("user1", "4") is True
        assert await service.has_achievement("user1", "5") is False
        assert store.calls == ["achievement_unlocked", "achievement_unlocked"]

    @pytest.mark.asyncio
    async def test_lookup_failure_returns_false(self, service, store):
        store.errors["achievement_unlocked"] = RuntimeError("down")
        assert await service.has_achievement("user1", "4") is False

    @pytest.mark.asyncio
    async def test_missing_ids(self, service, store):
        assert await service.has_achievement("", "4") is False
        assert await service.has_achievement("user1", "") is False
        assert store.count() == 0


class TestUnlockAchievement:

    @pytest.mark.asyncio
    async def test_unlock_twice_inserts_once(self, service, store):
        assert await service.unlock_achievement("user1", "4") is True
        assert await service.unlock_achievement("user1", "4") is True

        assert store.count("insert_achievement_unlock") == 1
        assert store.unlocks["user1"]["4"] == NOW

    @pytest.mark.asyncio
    async def test_unlock_invalidates_achievement_cache(self, service, store):
        store.errors["fetch_achievements_page"] = RuntimeError("down")
        before = await service.get_user_achievements("user1", page_size=50)
        assert not any(a.is_unlocked for a in before)

        await service.unlock_achievement("user1", "9")

        after = await service.get_user_achievements("user1", page_size=50)
        assert {a.id for a in after if a.is_unlocked} == {"9"}

    @pytest.mark.asyncio
    async def test_already_unlocked_in_cache_skips_write(self, service, store):
        store.achievement_rows["user1"] = [achievement_row("a", "tasks", unlocked=True)]
        await service.get_user_achievements("user1")

        assert await service.unlock_achievement("user1", "a") is True
        assert "insert_achievement_unlock" not in store.calls

    @pytest.mark.asyncio
    async def test_insert_failure_returns_false(self, service, store):
        store.errors["insert_achievement_unlock"] = RuntimeError("write failed")
        assert await service.unlock_achievement("user1", "4") is False

    @pytest.mark.asyncio
    async def test_missing_ids_return_false(self, service, store):
        assert await service.unlock_achievement("", "4") is False
        assert await service.unlock_achievement("user1", "") is False
        assert store.count() == 0


def test_filter_and_paginate_pure():
    items = [
        Achievement(id=str(i), name="n", description="", category=AchievementCategory.TASKS)
        for i in range(5)
    ]
    assert [a.id for a in filter_and_paginate(items, None, 2, 2)] == ["2", "3"]
    assert filter_and_paginate(items, AchievementCategory.STREAKS, 1, 10) == []


@pytest.mark.asyncio
async def test_default_catalog_covers_all_categories(store):
    achievements = await DefaultAchievementCatalog().list_achievements("nobody", store)

    assert {a.category for a in achievements} == set(AchievementCategory)
    assert all(not a.is_unlocked for a in achievements)
