"""Reference data seeding.

Loads the bundled providers, welfare schemes and national helplines from
``reference/*.json`` and writes them into the directory tables.  Runs
once at application startup when ``seed_reference_data`` is enabled;
records are keyed by id, so seeding twice overwrites rather than
duplicates.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import orjson
import structlog
from pydantic import BaseModel

from echoaid.models.directory import EmergencyContact, Provider, Scheme

if TYPE_CHECKING:
    from echoaid.services.directory import DirectoryService

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent / "reference"
PROVIDERS_PATH: Path = _DATA_DIR / "providers.json"
SCHEMES_PATH: Path = _DATA_DIR / "schemes.json"
EMERGENCY_CONTACTS_PATH: Path = _DATA_DIR / "emergency_contacts.json"

_M = TypeVar("_M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _load(path: Path, model: type[_M]) -> list[_M]:
    """Parse a JSON array of records from *path* into *model* instances.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    pydantic.ValidationError
        If a record does not match the model.
    """
    raw = orjson.loads(path.read_bytes())
    records = [model.model_validate(item) for item in raw]
    logger.info("seed.loaded", file=path.name, count=len(records))
    return records


def load_providers(path: Path | None = None) -> list[Provider]:
    return _load(path or PROVIDERS_PATH, Provider)


def load_schemes(path: Path | None = None) -> list[Scheme]:
    return _load(path or SCHEMES_PATH, Scheme)


def load_emergency_contacts(path: Path | None = None) -> list[EmergencyContact]:
    return _load(path or EMERGENCY_CONTACTS_PATH, EmergencyContact)


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


async def seed_reference_data(directory: DirectoryService) -> dict[str, int]:
    """Write all bundled reference records through *directory*.

    Returns the number of records written per table.
    """
    providers = load_providers()
    schemes = load_schemes()
    contacts = load_emergency_contacts()

    for provider in providers:
        await directory.add_provider(provider)
    for scheme in schemes:
        await directory.add_scheme(scheme)
    for contact in contacts:
        await directory.add_emergency_contact(contact)

    counts = {
        "providers": len(providers),
        "schemes": len(schemes),
        "emergency_contacts": len(contacts),
    }
    logger.info("seed.complete", **counts)
    return counts
