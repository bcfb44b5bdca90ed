#!/usr/bin/env python3
"""
Tests for the cached context provider.
"""
import unittest
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.append(str(backend_dir))
sys.path.append(str(Path(__file__).parent))

from core.cache import TTLCache
from core.exceptions import ContextLoadError
from services.context_provider import ScriptContextProvider
from services.context_store import InMemoryContextStore
from fakes import CUSTOM_VOICE, DEFAULT_PROFILE, SHARED_VOICE


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class BrokenStore(InMemoryContextStore):
    """Store whose lookups fail for the methods listed in `failing`."""

    def __init__(self, failing, **kwargs):
        super().__init__(**kwargs)
        self.failing = set(failing)

    async def get_user_profile(self, user_id):
        if "profile" in self.failing:
            raise RuntimeError("profile backend down")
        return await super().get_user_profile(user_id)

    async def get_active_user_voice(self, user_id):
        if "voice" in self.failing:
            raise RuntimeError("voice backend down")
        return await super().get_active_user_voice(user_id)

    async def get_negative_keywords(self, user_id):
        if "keywords" in self.failing:
            raise RuntimeError("keyword backend down")
        return await super().get_negative_keywords(user_id)


def make_store(**overrides) -> InMemoryContextStore:
    data = dict(
        profiles={"user-1": DEFAULT_PROFILE, "user-2": {}},
        user_voices={"user-1": [dict(CUSTOM_VOICE, isActive=False, id="old"), CUSTOM_VOICE]},
        shared_voices=[dict(SHARED_VOICE, isDefault=False, id="other"), SHARED_VOICE],
        negative_keywords={"user-1": ["  hustle ", "", "grind"]},
    )
    data.update(overrides)
    return InMemoryContextStore(**data)


class TestContextLoading(unittest.IsolatedAsyncioTestCase):

    async def test_loads_profile_voice_and_keywords(self):
        provider = ScriptContextProvider(make_store())
        context = await provider.load_context("user-1")

        self.assertEqual(context.user_id, "user-1")
        self.assertEqual(context.profile, DEFAULT_PROFILE)
        self.assertEqual(context.voice["id"], "voice-1")
        self.assertTrue(context.has_custom_voice)
        self.assertEqual(context.negative_keywords, ["hustle", "grind"])

    async def test_falls_back_to_default_shared_voice(self):
        store = make_store()
        context = await ScriptContextProvider(store).load_context("user-2")

        self.assertEqual(context.voice["id"], "shared-1")
        self.assertFalse(context.has_custom_voice)
        self.assertEqual(context.negative_keywords, [])
        self.assertEqual(store.call_counts["shared_voice"], 1)

    async def test_no_voice_at_all(self):
        store = make_store(shared_voices=[])
        context = await ScriptContextProvider(store).load_context("user-2")
        self.assertIsNone(context.voice)

    async def test_missing_profile_is_not_found(self):
        provider = ScriptContextProvider(make_store())
        with self.assertRaises(ContextLoadError) as ctx:
            await provider.load_context("nobody")
        self.assertTrue(ctx.exception.not_found)
        self.assertEqual(ctx.exception.user_id, "nobody")

    async def test_empty_user_id(self):
        with self.assertRaises(ContextLoadError):
            await ScriptContextProvider(make_store()).load_context("")

    async def test_profile_store_failure_is_fatal(self):
        provider = ScriptContextProvider(BrokenStore({"profile"}, profiles={"user-1": DEFAULT_PROFILE}))
        with self.assertRaises(ContextLoadError) as ctx:
            await provider.load_context("user-1")
        self.assertFalse(ctx.exception.not_found)
        self.assertEqual(ctx.exception.error_code, "CONTEXT_LOAD_FAILED")

    async def test_voice_and_keyword_failures_degrade(self):
        store = BrokenStore(
            {"voice", "keywords"},
            profiles={"user-1": DEFAULT_PROFILE},
            negative_keywords={"user-1": ["hustle"]},
        )
        provider = ScriptContextProvider(store)

        with self.assertLogs("script_engine", level="WARNING"):
            context = await provider.load_context("user-1")

        self.assertEqual(context.profile, DEFAULT_PROFILE)
        self.assertIsNone(context.voice)
        self.assertEqual(context.negative_keywords, [])


class TestContextCaching(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.store = make_store()
        self.provider = ScriptContextProvider(self.store, cache=TTLCache(default_ttl=900, clock=self.clock))

    async def test_second_load_is_served_from_cache(self):
        first = await self.provider.load_context("user-1")
        second = await self.provider.load_context("user-1")

        self.assertIs(first, second)
        self.assertEqual(self.store.call_counts["profile"], 1)
        self.assertEqual(self.store.call_counts["user_voice"], 1)
        self.assertEqual(self.store.call_counts["keywords"], 1)

    async def test_users_are_cached_separately(self):
        await self.provider.load_context("user-1")
        await self.provider.load_context("user-2")
        self.assertEqual(self.store.call_counts["profile"], 2)

    async def test_entries_expire_after_ttl(self):
        await self.provider.load_context("user-1")

        self.clock.advance(899)
        await self.provider.load_context("user-1")
        self.assertEqual(self.store.call_counts["profile"], 1)

        self.clock.advance(1)
        await self.provider.load_context("user-1")
        self.assertEqual(self.store.call_counts["profile"], 2)

    async def test_invalidate_user_cache(self):
        await self.provider.load_context("user-1")
        await self.provider.load_context("user-2")

        self.store.negative_keywords["user-1"] = ["new"]
        self.provider.invalidate_user_cache("user-1")

        context = await self.provider.load_context("user-1")
        self.assertEqual(context.negative_keywords, ["new"])
        self.assertEqual(self.store.call_counts["profile"], 3)

        await self.provider.load_context("user-2")
        self.assertEqual(self.store.call_counts["profile"], 3)

    async def test_clear_cache(self):
        await self.provider.load_context("user-1")
        self.provider.clear_cache()
        await self.provider.load_context("user-1")
        self.assertEqual(self.store.call_counts["profile"], 2)

    async def test_failed_profile_is_not_cached(self):
        with self.assertRaises(ContextLoadError):
            await self.provider.load_context("user-3")

        self.store.profiles["user-3"] = {}
        context = await self.provider.load_context("user-3")
        self.assertEqual(context.profile, {})

    async def test_degraded_voice_is_retried_on_next_load(self):
        store = BrokenStore({"voice"}, profiles={"user-1": {}}, user_voices={"user-1": [CUSTOM_VOICE]})
        provider = ScriptContextProvider(store, cache=TTLCache(default_ttl=900, clock=self.clock))

        with self.assertLogs("script_engine", level="WARNING"):
            context = await provider.load_context("user-1")
        self.assertIsNone(context.voice)

        store.failing.clear()
        provider.cache.delete("context:user-1")
        context = await provider.load_context("user-1")
        self.assertEqual(context.voice["id"], "voice-1")


if __name__ == "__main__":
    unittest.main()
