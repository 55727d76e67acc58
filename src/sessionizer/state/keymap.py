"""Key binding table — a fixed alphabet of single-character keys mapped to paths.

Every mutation is one transaction: re-read the file, validate against and
compute the complete new key → binding mapping from what was read, write it
atomically, then swap it into memory. If validation or the write fails,
the file and the in-memory table keep the last committed state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import yaml

from sessionizer.errors import (
    InvalidKey,
    KeyInUse,
    KeyNotBound,
    NotFoundError,
    SessionNotFound,
    StateIOError,
)
from sessionizer.models import KeyBinding
from sessionizer.paths import normalize_path, path_key
from sessionizer.state.files import atomic_write_text

logger = logging.getLogger(__name__)

BindingMap = dict[str, KeyBinding]
Alphabet = tuple[str, ...]


class KeyBindingTable:
    """Persisted key → path bindings over an ordered alphabet."""

    def __init__(self, path: Path, alphabet: Sequence[str]) -> None:
        self.path = Path(path)
        self._default_alphabet: Alphabet = _dedupe_keys(alphabet)
        self._alphabet, self._mapping = self._read()

    # ── Storage ───────────────────────────────────────────────

    def _read(self) -> tuple[Alphabet, BindingMap]:
        """Read the file. A missing file is an empty table over the default alphabet."""
        alphabet = self._default_alphabet
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return alphabet, {}
        except OSError as e:
            raise StateIOError(f"failed to read {self.path}: {e}") from e

        try:
            data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            raise StateIOError(f"failed to parse {self.path}: {e}") from e
        if not isinstance(data, dict):
            return alphabet, {}

        keys = data.get("available_keys")
        if isinstance(keys, list) and keys:
            alphabet = _dedupe_keys(str(k) for k in keys)

        mapping: BindingMap = {}
        sessions = data.get("sessions") or {}
        if not isinstance(sessions, dict):
            return alphabet, mapping
        for key, entry in sessions.items():
            if not isinstance(entry, dict):
                continue
            raw_path = str(entry.get("path") or "")
            if not raw_path:
                continue
            key = str(key)
            mapping[key] = KeyBinding(
                key=key,
                path=normalize_path(raw_path),
                description=str(entry.get("description") or ""),
            )
        return alphabet, mapping

    def _write(self, alphabet: Alphabet, mapping: BindingMap) -> None:
        ordered = [k for k in alphabet if k in mapping]
        ordered += sorted(k for k in mapping if k not in alphabet)
        payload = {
            "available_keys": list(alphabet),
            "sessions": {
                k: {
                    "path": mapping[k].path,
                    "repository": mapping[k].repository,
                    "description": mapping[k].description,
                }
                for k in ordered
            },
        }
        text = yaml.safe_dump(payload, default_flow_style=False, allow_unicode=True, sort_keys=False)
        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise StateIOError(f"failed to write {self.path}: {e}") from e

    def _transaction(self, mutate: Callable[[BindingMap, Alphabet], BindingMap]) -> None:
        """read → mutate a copy → atomic rewrite → commit to memory.

        mutate validates against the freshly read state and raises to abort
        before anything is written.
        """
        alphabet, current = self._read()
        updated = mutate({k: _copy(b) for k, b in current.items()}, alphabet)
        self._write(alphabet, updated)
        self._alphabet, self._mapping = alphabet, updated

    def reload(self) -> None:
        """Pick up edits made to the file by other processes."""
        self._alphabet, self._mapping = self._read()

    # ── Queries ───────────────────────────────────────────────

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    def get(self, key: str) -> KeyBinding | None:
        binding = self._mapping.get(key)
        return _copy(binding) if binding else None

    def key_for(self, path: str) -> str | None:
        return _key_for(self._mapping, path, self._alphabet)

    def bindings(self) -> list[KeyBinding]:
        """One entry per alphabet key, free keys included."""
        return [
            _copy(self._mapping[k]) if k in self._mapping else KeyBinding(key=k)
            for k in self._alphabet
        ]

    def bound(self) -> list[KeyBinding]:
        return [b for b in self.bindings() if not b.is_free]

    def available_keys(self) -> list[str]:
        return [k for k in self._alphabet if k not in self._mapping]

    def path_to_key(self) -> dict[str, str]:
        """path_key(path) → key for every bound key."""
        return {path_key(b.path): b.key for b in self.bound()}

    # ── Mutations ─────────────────────────────────────────────

    def assign(self, path: str, key: str) -> KeyBinding:
        """Bind path to key.

        A key previously held by path is cleared. If key already belongs to
        another path, that path takes over path's previous key (swap), or
        becomes free when path had none.
        """
        path = normalize_path(path)

        def mutate(mapping: BindingMap, alphabet: Alphabet) -> BindingMap:
            if key not in alphabet:
                raise InvalidKey(key)
            held = _keys_for(mapping, path, alphabet)
            previous_key = held[0] if held else None
            if previous_key == key and len(held) == 1:
                return mapping

            moving = mapping.get(previous_key) if previous_key else None
            occupant = mapping.get(key)
            if occupant and path_key(occupant.path) == path_key(path):
                occupant = None

            for k in held:
                mapping.pop(k, None)

            mapping[key] = KeyBinding(
                key=key,
                path=path,
                description=moving.description if moving else "",
            )
            if occupant:
                if previous_key and previous_key != key:
                    mapping[previous_key] = KeyBinding(
                        key=previous_key,
                        path=occupant.path,
                        description=occupant.description,
                    )
                    logger.info(
                        "Swapped keys: %s → %s, %s → %s",
                        key, path, previous_key, occupant.path,
                    )
                else:
                    logger.info("Key %s taken from %s", key, occupant.path)
            return mapping

        self._transaction(mutate)
        return self.get(key)

    def release(self, key: str) -> None:
        """Free key. Raises KeyNotBound if it is already free."""

        def mutate(mapping: BindingMap, alphabet: Alphabet) -> BindingMap:
            if key not in mapping:
                raise KeyNotBound(key)
            del mapping[key]
            return mapping

        self._transaction(mutate)

    def unbind_path(self, path: str) -> str:
        """Free whichever key holds path. Returns that key."""
        released: list[str] = []

        def mutate(mapping: BindingMap, alphabet: Alphabet) -> BindingMap:
            key = _key_for(mapping, path, alphabet)
            if key is None:
                raise NotFoundError(f"no key bound to {path}")
            del mapping[key]
            released.append(key)
            return mapping

        self._transaction(mutate)
        return released[0]

    def rename(self, old_key: str, new_key: str) -> None:
        """Move the binding on old_key to new_key, freeing old_key."""

        def mutate(mapping: BindingMap, alphabet: Alphabet) -> BindingMap:
            if old_key not in mapping:
                raise SessionNotFound(old_key)
            if old_key == new_key:
                return mapping
            if new_key not in alphabet:
                raise InvalidKey(new_key)
            if new_key in mapping:
                raise KeyInUse(new_key, mapping[new_key].path)
            moving = mapping.pop(old_key)
            mapping[new_key] = KeyBinding(
                key=new_key, path=moving.path, description=moving.description
            )
            return mapping

        self._transaction(mutate)

    def describe(self, key: str, description: str) -> None:
        def mutate(mapping: BindingMap, alphabet: Alphabet) -> BindingMap:
            if key not in mapping:
                raise KeyNotBound(key)
            mapping[key].description = description.strip()
            return mapping

        self._transaction(mutate)


def _copy(binding: KeyBinding) -> KeyBinding:
    return KeyBinding(key=binding.key, path=binding.path, description=binding.description)


def _dedupe_keys(keys) -> Alphabet:
    seen: list[str] = []
    for k in keys:
        k = str(k)
        if k and k not in seen:
            seen.append(k)
    return tuple(seen)


def _keys_for(mapping: BindingMap, path: str, alphabet: Sequence[str]) -> list[str]:
    """All keys bound to path, alphabet order first."""
    target = path_key(path)
    order = {k: i for i, k in enumerate(alphabet)}
    matches = [k for k, b in mapping.items() if b.path and path_key(b.path) == target]
    return sorted(matches, key=lambda k: (order.get(k, len(order)), k))


def _key_for(mapping: BindingMap, path: str, alphabet: Sequence[str]) -> str | None:
    keys = _keys_for(mapping, path, alphabet)
    return keys[0] if keys else None
