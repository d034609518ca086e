# repairdesk/state.py
"""Values that must survive a restart of this process but do not belong in the sheet."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from . import models

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "currentUser"
LAST_JOB_CARD_KEY = "lastJobCardNumber"


def get_value(db: Session, key: str) -> Optional[models.StoredValue]:
    return db.get(models.StoredValue, key)


class KeyValueStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        with self._session_factory() as db:
            row = get_value(db, key)
            if row is None:
                return default
            try:
                return json.loads(row.value)
            except ValueError:
                logger.error("Discarding unreadable stored value for %r", key)
                db.delete(row)
                db.commit()
                return default

    def set(self, key: str, value: Any) -> None:
        with self._session_factory() as db:
            row = get_value(db, key)
            if row is None:
                db.add(models.StoredValue(key=key, value=json.dumps(value)))
            else:
                row.value = json.dumps(value)
            db.commit()

    def delete(self, key: str) -> None:
        with self._session_factory() as db:
            row = get_value(db, key)
            if row is not None:
                db.delete(row)
                db.commit()

    def __contains__(self, key: str) -> bool:
        with self._session_factory() as db:
            return get_value(db, key) is not None


class JobCardCounter:
    """High-water mark of issued job card numbers.

    ``allocate`` bumps and persists the mark before the request is sent;
    ``release`` undoes it when the sheet rejects the request, so a failed
    save never burns a number.
    """

    def __init__(self, state: KeyValueStore, start: Callable[[], int]):
        self.state = state
        self.start = start

    @property
    def last(self) -> int:
        return int(self.state.get(LAST_JOB_CARD_KEY, self.start()))

    def allocate(self) -> int:
        number = self.last + 1
        self.state.set(LAST_JOB_CARD_KEY, number)
        return number

    def release(self, number: int) -> None:
        if self.last == number:
            self.state.set(LAST_JOB_CARD_KEY, number - 1)
            logger.warning("Job card number %s rolled back", number)
