# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
store.py — In-memory persistence for a running settlement.

Holds the current WorldState plus capped, most-recent-first histories of
snapshots, world events and chronicle entries.  The state goes in and comes
out as deep copies so callers can never alias the stored one.

save_json() writes to a temp file and then renames, so a reader never sees a
half-written file.

Public API:
    MemoryStore(snapshot_cap, event_cap, chronicle_cap)
        get_world_state() / set_world_state(state)
        push_snapshot(snap) / push_event(event) / push_chronicle(entry)
        get_snapshots(count) / get_events(count) / get_chronicles(count)
        save_json(path) / MemoryStore.load_json(path)
"""

from __future__ import annotations

import collections
import copy
import itertools
import json
import os
import pathlib

from . import config
from .state import (ChronicleEntry, Snapshot, WorldState, _event_from_dict,
                    _record, to_dict)


class MemoryStore:

    def __init__(self, snapshot_cap: int = config.SNAPSHOT_CAP,
                 event_cap: int = config.EVENT_CAP,
                 chronicle_cap: int = config.CHRONICLE_CAP):
        self._state:      WorldState | None = None
        self._snapshots:  collections.deque = collections.deque(maxlen=snapshot_cap)
        self._events:     collections.deque = collections.deque(maxlen=event_cap)
        self._chronicles: collections.deque = collections.deque(maxlen=chronicle_cap)

    # ── World state ─────────────────────────────────────────────────────────

    def get_world_state(self) -> WorldState | None:
        return copy.deepcopy(self._state)

    def set_world_state(self, state: WorldState) -> None:
        self._state = copy.deepcopy(state)

    # ── Histories (newest first; the oldest entry drops at the cap) ────────

    def push_snapshot(self, snap: Snapshot) -> None:
        self._snapshots.appendleft(snap)

    def push_event(self, event) -> None:
        self._events.appendleft(event)

    def push_chronicle(self, entry: ChronicleEntry) -> None:
        self._chronicles.appendleft(entry)

    @staticmethod
    def _take(buf: collections.deque, count: int) -> list:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        return list(itertools.islice(buf, count))

    def get_snapshots(self, count: int = 10) -> list:
        return self._take(self._snapshots, count)

    def get_events(self, count: int = 50) -> list:
        return self._take(self._events, count)

    def get_chronicles(self, count: int = 7) -> list:
        return self._take(self._chronicles, count)

    # ── JSON persistence ────────────────────────────────────────────────────

    def save_json(self, path) -> None:
        path = pathlib.Path(path)
        payload = {
            'state':      to_dict(self._state) if self._state is not None else None,
            'snapshots':  to_dict(list(self._snapshots)),
            'events':     to_dict(list(self._events)),
            'chronicles': to_dict(list(self._chronicles)),
        }
        tmp = path.with_suffix(path.suffix + '.tmp')
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding='utf-8')
        os.replace(tmp, path)

    @classmethod
    def load_json(cls, path) -> 'MemoryStore':
        """Rebuild a store from save_json() output; older state files are backfilled."""
        data  = json.loads(pathlib.Path(path).read_text(encoding='utf-8'))
        store = cls()
        if data.get('state') is not None:
            store._state = WorldState.from_dict(data['state'])
        # Saved newest first; keep the head when a file outgrows the caps
        for buf, rows, build in (
            (store._snapshots,  data.get('snapshots', []),  lambda d: _record(Snapshot, d)),
            (store._events,     data.get('events', []),     _event_from_dict),
            (store._chronicles, data.get('chronicles', []), lambda d: _record(ChronicleEntry, d)),
        ):
            buf.extend(build(d) for d in rows[:buf.maxlen])
        return store
