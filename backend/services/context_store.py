"""
Context store port: read-only lookups of user data needed for personalization.
The production store (Firestore) lives outside this service; the in-memory
adapter backs local runs and tests.
"""
import asyncio
import json
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class ContextStore(ABC):
    """Read-only access to user profile, voices and negative keywords."""

    @abstractmethod
    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the user's profile, or None if the user does not exist."""
        pass

    @abstractmethod
    async def get_active_user_voice(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the user's active custom voice, if any."""
        pass

    @abstractmethod
    async def get_default_shared_voice(self) -> Optional[Dict[str, Any]]:
        """Return the shared voice flagged as default, if any."""
        pass

    @abstractmethod
    async def get_negative_keywords(self, user_id: str) -> List[str]:
        """Return the user's negative keyword list."""
        pass


class InMemoryContextStore(ContextStore):
    """Dictionary-backed store. Counts calls per lookup so caching is observable."""

    def __init__(
        self,
        profiles: Optional[Dict[str, Dict[str, Any]]] = None,
        user_voices: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        shared_voices: Optional[List[Dict[str, Any]]] = None,
        negative_keywords: Optional[Dict[str, List[str]]] = None,
        latency: float = 0.0,
    ):
        self.profiles = profiles or {}
        self.user_voices = user_voices or {}
        self.shared_voices = shared_voices or []
        self.negative_keywords = negative_keywords or {}
        self.latency = latency
        self.call_counts: Counter = Counter()

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryContextStore":
        """
        Load a store from a JSON file with optional top-level keys
        profiles, userVoices, sharedVoices and negativeKeywords.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(
            profiles=data.get("profiles"),
            user_voices=data.get("userVoices"),
            shared_voices=data.get("sharedVoices"),
            negative_keywords=data.get("negativeKeywords"),
        )

    async def _simulate_io(self, method: str):
        self.call_counts[method] += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        await self._simulate_io("profile")
        return self.profiles.get(user_id)

    async def get_active_user_voice(self, user_id: str) -> Optional[Dict[str, Any]]:
        await self._simulate_io("user_voice")
        for voice in self.user_voices.get(user_id, []):
            if voice.get("isActive"):
                return voice
        return None

    async def get_default_shared_voice(self) -> Optional[Dict[str, Any]]:
        await self._simulate_io("shared_voice")
        for voice in self.shared_voices:
            if voice.get("isDefault"):
                return voice
        return None

    async def get_negative_keywords(self, user_id: str) -> List[str]:
        await self._simulate_io("keywords")
        return list(self.negative_keywords.get(user_id, []))
