"""Pure merge functions over the request collection.

Collections are immutable tuples ordered most-recent-first. Every function
returns a new tuple and leaves its inputs untouched, so the owner of the
collection can swap references without locking.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyfarmconnect.models.request import Request, RequestStatus

RequestCollection = tuple[Request, ...]

# Identity fields always come from the record already in the collection.
_PINNED_FIELDS = frozenset({"id", "kind"})


def _merged_status(current: RequestStatus, incoming: RequestStatus) -> RequestStatus:
    # Statuses only move forward.
    return incoming if incoming.rank > current.rank else current


def merge_request(existing: Request, incoming: Request) -> Request:
    """Overlay every known field of *incoming* onto *existing*.

    ``None`` fields of *incoming* never clobber known values.
    """
    patch = {key: value for key, value in incoming.defined_fields().items() if key not in _PINNED_FIELDS}
    patch["status"] = _merged_status(existing.status, incoming.status)
    merged = existing.model_copy(update=patch)
    return existing if merged == existing else merged


def _index_of(collection: RequestCollection, request_id: str) -> int | None:
    for index, request in enumerate(collection):
        if request.id == request_id:
            return index
    return None


def upsert(collection: RequestCollection, incoming: Request) -> RequestCollection:
    """Merge *incoming* into the entry with the same id, or prepend it.

    Idempotent: applying the same *incoming* twice yields the same
    collection as applying it once.
    """
    index = _index_of(collection, incoming.id)
    if index is None:
        return (incoming, *collection)

    merged = merge_request(collection[index], incoming)
    if merged is collection[index]:
        return collection
    return (*collection[:index], merged, *collection[index + 1 :])


def reconcile_snapshot(collection: RequestCollection, fetched: Iterable[Request]) -> RequestCollection:
    """Fold a snapshot into *collection* without removing anything.

    Records already present are merged in place. New records are prepended
    as one block in the order the snapshot listed them. Duplicate ids
    within *fetched* collapse into a single merged record.
    """
    updated = list(collection)
    positions = {request.id: index for index, request in enumerate(updated)}
    added: list[Request] = []
    added_positions: dict[str, int] = {}

    for request in fetched:
        if request.id in positions:
            index = positions[request.id]
            updated[index] = merge_request(updated[index], request)
        elif request.id in added_positions:
            index = added_positions[request.id]
            added[index] = merge_request(added[index], request)
        else:
            added_positions[request.id] = len(added)
            added.append(request)

    result = (*added, *updated)
    return collection if result == collection else result


def find(collection: RequestCollection, request_id: str) -> Request | None:
    index = _index_of(collection, request_id)
    return None if index is None else collection[index]
