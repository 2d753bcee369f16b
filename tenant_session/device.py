"""
Device Identifier — a random unique value kept in a process-wide state slot.

The identifier is unrelated to the session record. Rotation replaces it
wholesale; the previous value is discarded once the new one is written.
Other components only pick up the new value after a restart, which the
caller is expected to announce.
"""
import uuid
import logging
from typing import Optional

from .conf import DEVICE_ID_KEY
from .exceptions import RotationFailure
from .storage import StateStore

logger = logging.getLogger("tenant_session.device")


def new_identifier() -> str:
    """Return a canonical random UUID4 string."""
    return str(uuid.uuid4())


async def current(state: StateStore, key: str = DEVICE_ID_KEY) -> Optional[str]:
    return await state.get(key)


async def rotate(state: StateStore, key: str = DEVICE_ID_KEY) -> str:
    """Generate a new identifier and write it to ``key``.

    Args:
        state: State store holding the identifier slot.
        key: Slot name.

    Returns:
        The new identifier.

    Raises:
        RotationFailure: If generation or the write fails; the stored
            identifier is left unchanged.
    """
    try:
        identifier = new_identifier()
    except OSError as err:
        raise RotationFailure(f"Could not generate a device identifier: {err}") from err
    try:
        written = await state.update(key, identifier)
    except OSError as err:
        raise RotationFailure(f"Could not write {key}: {err}") from err
    if not written:
        raise RotationFailure(f"State store refused to update {key}")
    logger.info("Device identifier %s rotated", key)
    return identifier
