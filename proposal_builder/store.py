# proposal_builder/store.py
"""Process-local holder for the proposals being edited.

Nothing here outlives the process; importing/exporting JSON is the way a
proposal leaves or re-enters the app.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from flask import Flask, current_app

from proposal_builder.models import Proposal

EXTENSION_KEY = "proposal_store"


class ProposalStore:
    """Dict of proposals keyed by id, safe for the threaded dev server.

    Edits go through ``editing()`` so a read-modify-write on one proposal
    never interleaves with another request.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Proposal] = {}
        self.lock = threading.RLock()

    def get(self, proposal_id: str) -> Optional[Proposal]:
        with self.lock:
            return self._items.get(proposal_id)

    def put(self, proposal: Proposal) -> Proposal:
        with self.lock:
            self._items[proposal.id] = proposal
        return proposal

    @contextmanager
    def editing(self, proposal_id: str) -> Iterator[Optional[Proposal]]:
        """Hold the store lock while the caller mutates the proposal (or None)."""
        with self.lock:
            yield self._items.get(proposal_id)

    def all(self) -> List[Proposal]:
        with self.lock:
            items = list(self._items.values())
        return sorted(items, key=lambda p: p.updated_at, reverse=True)

    def delete(self, proposal_id: str) -> bool:
        with self.lock:
            return self._items.pop(proposal_id, None) is not None

    def clear(self) -> None:
        with self.lock:
            self._items.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._items)


def init_store(app: Flask) -> ProposalStore:
    store = ProposalStore()
    app.extensions[EXTENSION_KEY] = store
    if app.config.get("SEED_SAMPLE_PROPOSAL"):
        from proposal_builder.seed import sample_proposal

        seeded = store.put(sample_proposal())
        logging.info("seeded sample proposal %s (%s)", seeded.id, seeded.name)
    return store


def get_store() -> ProposalStore:
    return current_app.extensions[EXTENSION_KEY]
