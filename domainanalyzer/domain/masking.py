"""
Domain ID Masking

Obfuscates numeric domain ids for display and links. Not a security
measure: the hash is reversible only through the stored mapping.
"""

import json
import logging
import string
from pathlib import Path
from threading import RLock
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_BASE36_DIGITS = string.digits + string.ascii_lowercase
FALLBACK_PREFIX = "d-"


def to_base36(value: int) -> str:
    """Render an integer in lowercase base 36."""
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def hash_domain_id(domain_id: int) -> str:
    """
    Deterministic masked form of a domain id.

    Rolling 31x string hash of ``domain-<id>`` wrapped to a signed 32-bit
    integer, then made positive and rendered in base 36.
    """
    value = 0
    for char in f"domain-{domain_id}":
        value = _int32(value * 31 + ord(char))
    return to_base36(abs(value))


def fallback_mask(domain_id: int) -> str:
    """Mapping-free encoding: ``d-`` followed by the id in base 36."""
    return f"{FALLBACK_PREFIX}{to_base36(domain_id)}"


def fallback_unmask(masked: str) -> Optional[int]:
    clean = masked[len(FALLBACK_PREFIX):] if masked.startswith(FALLBACK_PREFIX) else masked
    try:
        return int(clean, 36)
    except ValueError:
        return None


class DomainIdMasker:
    """
    Masks domain ids and remembers the mapping so they can be unmasked.

    The mapping lives in memory and is optionally persisted as JSON to
    ``storage_path``. Storage failures are logged and never propagate.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self.storage_path = storage_path
        self._lock = RLock()
        self._mapping: Dict[str, int] = self._load()

    def _load(self) -> Dict[str, int]:
        if self.storage_path is None or not self.storage_path.exists():
            return {}
        try:
            with self.storage_path.open('r', encoding='utf-8') as f:
                data = json.load(f)
            return {str(key): int(value) for key, value in data.items()}
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not read domain id mapping from {self.storage_path}: {e}")
            return {}

    def _save(self) -> None:
        if self.storage_path is None:
            return
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with self.storage_path.open('w', encoding='utf-8') as f:
                json.dump(self._mapping, f)
        except OSError as e:
            logger.warning(f"Could not write domain id mapping to {self.storage_path}: {e}")

    def mask(self, domain_id: int) -> str:
        masked = hash_domain_id(domain_id)
        with self._lock:
            if self._mapping.get(masked) != domain_id:
                self._mapping[masked] = domain_id
                self._save()
        return masked

    def unmask(self, masked: str) -> Optional[int]:
        """Original id for ``masked``, or None if it was never masked here."""
        with self._lock:
            return self._mapping.get(masked)

    def resolve(self, value: str) -> Optional[int]:
        """
        Turn user input into a domain id.

        Accepts a plain numeric id, a masked id known to this masker or a
        ``d-`` fallback encoding.
        """
        value = value.strip()
        if value.isdigit():
            return int(value)
        domain_id = self.unmask(value)
        if domain_id is not None:
            return domain_id
        if value.startswith(FALLBACK_PREFIX):
            return fallback_unmask(value)
        return None

    def clear(self) -> None:
        with self._lock:
            self._mapping.clear()
            if self.storage_path is not None:
                try:
                    self.storage_path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning(f"Could not remove domain id mapping {self.storage_path}: {e}")

    def __len__(self) -> int:
        return len(self._mapping)
