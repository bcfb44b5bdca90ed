"""
Context provider with caching to avoid redundant store lookups.
Loads user profile, voice settings, and negative keywords once per TTL window.
"""
import asyncio
from typing import Any, Dict, List, Optional

from core.cache import CacheBackend, MISSING, TTLCache
from core.config import settings
from core.exceptions import ContextLoadError
from core.logger import logger
from services.context_store import ContextStore
from services.models import ScriptContext

CACHE_KINDS = ("context", "profile", "voice", "keywords")


def _cache_key(kind: str, user_id: str) -> str:
    return f"{kind}:{user_id}"


class ScriptContextProvider:
    """Loads and caches per-user ScriptContext."""

    def __init__(self, store: ContextStore, cache: Optional[CacheBackend] = None):
        self.store = store
        self.cache = cache if cache is not None else TTLCache(default_ttl=settings.context_cache_ttl_seconds)

    async def load_context(self, user_id: str) -> ScriptContext:
        """Load all context data for a user; profile failures are fatal, the rest degrade."""
        if not user_id:
            raise ContextLoadError("A user id is required to load script context")

        cache_key = _cache_key("context", user_id)
        cached = self.cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        profile, voice, negative_keywords = await asyncio.gather(
            self._load_user_profile(user_id),
            self._load_active_voice(user_id),
            self._load_negative_keywords(user_id),
        )

        context = ScriptContext(
            user_id=user_id,
            profile=profile,
            voice=voice,
            negative_keywords=negative_keywords,
        )
        self.cache.set(cache_key, context)
        return context

    async def _load_user_profile(self, user_id: str) -> Dict[str, Any]:
        cache_key = _cache_key("profile", user_id)
        cached = self.cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        try:
            profile = await self.store.get_user_profile(user_id)
        except Exception as e:
            logger.error(f"Failed to load profile for user {user_id}: {str(e)}")
            raise ContextLoadError(f"Failed to load user context: {str(e)}", user_id) from e

        if profile is None:
            raise ContextLoadError(f"User profile not found for {user_id}", user_id, not_found=True)

        self.cache.set(cache_key, profile)
        return profile

    async def _load_active_voice(self, user_id: str) -> Optional[Dict[str, Any]]:
        """User's active custom voice first, then the default shared voice, else None."""
        cache_key = _cache_key("voice", user_id)
        cached = self.cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        try:
            voice = await self.store.get_active_user_voice(user_id)
            if voice is None:
                voice = await self.store.get_default_shared_voice()
        except Exception as e:
            logger.warning(f"Failed to load voice for user {user_id}, continuing without voice: {str(e)}")
            return None

        self.cache.set(cache_key, voice)
        return voice

    async def _load_negative_keywords(self, user_id: str) -> List[str]:
        cache_key = _cache_key("keywords", user_id)
        cached = self.cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        try:
            keywords = await self.store.get_negative_keywords(user_id)
        except Exception as e:
            logger.warning(f"Failed to load negative keywords for user {user_id}: {str(e)}")
            return []

        keywords = [k.strip() for k in keywords or [] if isinstance(k, str) and k.strip()]
        self.cache.set(cache_key, keywords)
        return keywords

    def invalidate_user_cache(self, user_id: str):
        """Drop every cached entry for a user (call after profile mutations)."""
        for kind in CACHE_KINDS:
            self.cache.delete(_cache_key(kind, user_id))
        logger.debug(f"Invalidated context cache for user {user_id}")

    def clear_cache(self):
        self.cache.clear()
