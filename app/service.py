from typing import List, Optional

from pydantic import ValidationError

from .errors import ErrorKind, Outcome
from .logging_utils import logger
from .models import DeleteResponse, Message, MessageCreate
from .storage import MessageStore


class MessageService:
    """
    Translates chat operations into store calls.

    Every store failure (or a store that was never built) is logged with
    its traceback and reported as ErrorKind.SERVER; callers only ever see
    an Outcome.
    """

    def __init__(self, store: Optional[MessageStore]) -> None:
        self._store = store

    def _require_store(self) -> MessageStore:
        if self._store is None:
            raise RuntimeError("message store is not connected")
        return self._store

    async def create(self, raw_body: bytes) -> Outcome[Message]:
        try:
            payload = MessageCreate.model_validate_json(raw_body)
        except ValidationError as e:
            logger.info("create rejected: %s", e.errors(include_url=False))
            return Outcome(error=ErrorKind.VALIDATION)

        try:
            message = await self._require_store().insert(
                from_=payload.from_, to=payload.to, msg=payload.msg
            )
        except Exception:
            logger.exception("create failed")
            return Outcome(error=ErrorKind.SERVER)
        return Outcome(value=message)

    async def list_all(self) -> Outcome[List[Message]]:
        try:
            messages = await self._require_store().list_all()
        except Exception:
            logger.exception("list failed")
            return Outcome(error=ErrorKind.SERVER)
        return Outcome(value=messages)

    async def list_for_user(self, user: str) -> Outcome[List[Message]]:
        try:
            messages = await self._require_store().list_for_user(user)
        except Exception:
            logger.exception("list for user %r failed", user)
            return Outcome(error=ErrorKind.SERVER)
        return Outcome(value=messages)

    async def get(self, message_id: str) -> Outcome[Message]:
        # malformed ids raise InvalidId in the store and end up as SERVER
        try:
            message = await self._require_store().get(message_id)
        except Exception:
            logger.exception("get %r failed", message_id)
            return Outcome(error=ErrorKind.SERVER)
        if message is None:
            return Outcome(error=ErrorKind.NOT_FOUND)
        return Outcome(value=message)

    async def delete(self, message_id: str) -> Outcome[DeleteResponse]:
        try:
            message = await self._require_store().delete(message_id)
        except Exception:
            logger.exception("delete %r failed", message_id)
            return Outcome(error=ErrorKind.SERVER)
        if message is None:
            return Outcome(error=ErrorKind.NOT_FOUND)
        return Outcome(value=DeleteResponse(deleted=message))
