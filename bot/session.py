"""
Per-chat booking sessions kept in aiogram FSM storage.
"""

import datetime
from typing import Optional

from aiogram.fsm.storage.base import BaseStorage, StorageKey
from pydantic import BaseModel

from bot.states import WizardStep


class BookingSession(BaseModel):
    """In-flight wizard state of one chat."""

    step: WizardStep = WizardStep.CHOOSE_DATE
    date: Optional[datetime.date] = None
    time: Optional[str] = None  # HH:MM
    name: Optional[str] = None
    username: Optional[str] = None


class SessionStore:
    """
    Key-value store of booking sessions keyed by chat ID.

    Backed by an aiogram storage: MemoryStorage keeps sessions in process
    memory, so they are lost on restart. Each chat maps to its own storage
    key, so concurrent updates from different chats never share an entry.
    """

    def __init__(self, storage: BaseStorage, bot_id: int):
        self.storage = storage
        self.bot_id = bot_id

    def _key(self, chat_id: int) -> StorageKey:
        return StorageKey(bot_id=self.bot_id, chat_id=chat_id, user_id=chat_id)

    async def get(self, chat_id: int) -> Optional[BookingSession]:
        key = self._key(chat_id)
        if await self.storage.get_state(key) is None:
            return None
        return BookingSession(**await self.storage.get_data(key))

    async def set(self, chat_id: int, session: BookingSession) -> None:
        key = self._key(chat_id)
        await self.storage.set_state(key, session.step.value)
        await self.storage.set_data(key, session.model_dump(mode="json"))

    async def delete(self, chat_id: int) -> None:
        key = self._key(chat_id)
        await self.storage.set_state(key, None)
        await self.storage.set_data(key, {})
