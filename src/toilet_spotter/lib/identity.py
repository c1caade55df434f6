"""Anonymous device identity.

Each installation tags its submissions and votes with an opaque identifier
generated locally the first time it is needed.  The store only ever reads
it as a foreign key.
"""

import secrets
from pathlib import Path
from typing import Protocol

from loguru import logger

DEVICE_ID_PREFIX = "device_"


def generate_device_id() -> str:
    """Return a new random device identifier."""
    return f"{DEVICE_ID_PREFIX}{secrets.token_hex(8)}"


class DeviceIdentityProvider(Protocol):
    """Capability returning a stable opaque string per installation."""

    async def get_or_create_device_id(self) -> str:
        """Return this installation's device id, creating it on first use."""
        ...


class FileDeviceIdentity:
    """Device identity persisted in a small text file.

    If the file cannot be read or written, an in-memory id is used for the
    rest of the process so the caller keeps a consistent identity.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._device_id: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def get_or_create_device_id(self) -> str:
        if self._device_id is not None:
            return self._device_id

        try:
            if self._path.is_file():
                stored = self._path.read_text(encoding="utf-8").strip()
                if stored:
                    self._device_id = stored
                    return stored

            device_id = generate_device_id()
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(device_id + "\n", encoding="utf-8")
            logger.info(f"Created device identity at {self._path}")
        except OSError as e:
            logger.error(f"Could not persist device identity at {self._path}: {e}")
            device_id = generate_device_id()

        self._device_id = device_id
        return device_id


class StaticDeviceIdentity:
    """Device identity supplied by the caller (e.g. an API client header)."""

    def __init__(self, device_id: str) -> None:
        if not device_id.strip():
            msg = "device_id must not be empty"
            raise ValueError(msg)
        self._device_id = device_id.strip()

    async def get_or_create_device_id(self) -> str:
        return self._device_id
