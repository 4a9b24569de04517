"""Three-tier catalog resolution (master / override / household custom).

A household's effective view of a catalog kind is:

    every non-archived master
      - dropped when the household hid it
      - replaced by the household's override when one exists
    + every non-archived household custom

Masters and overrides come first, customs after; each tier is sorted by the
caller's sort key but there is no global re-sort.
"""
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from kitchen.domain.Catalog import CatalogEntity, CatalogKind, HiddenMaster, Scope
from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.events.event_helpers import (
    publish_master_hidden, publish_master_unhidden, publish_override_saved
)
from kitchen.infra.Document_Store import DocumentStore
from kitchen.utilities.constants import HIDDEN_MASTERS
from kitchen.utilities.errors import DuplicateKeyError, EntityNotFoundError, require_household

logger = logging.getLogger(__name__)

KindLike = Union[CatalogKind, str]

DEFAULT_SORT = [("name", 1)]
NOT_ARCHIVED = {"$ne": True}


def as_kind(kind: KindLike) -> CatalogKind:
    return kind if isinstance(kind, CatalogKind) else CatalogKind(kind)


class ScopeResolver:
    def __init__(self, store: DocumentStore, bus: Optional[EventBus] = None):
        self.store = store
        self.bus = bus if bus is not None else GLOBAL_EVENT_BUS

    # -------------------- Reads --------------------
    async def resolve_catalog(self, kind: KindLike, household_id: str, filters: Optional[Mapping[str, Any]] = None,
                              sort=None) -> List[CatalogEntity]:
        """Effective catalog of ``kind`` for one household.

        ``filters`` narrows every tier (e.g. {"sidedish": True}). Never returns
        both a master and its override, and never a hidden master.
        """
        kind = as_kind(kind)
        household_id = require_household(household_id)
        base = dict(filters or {})
        sort = sort or DEFAULT_SORT
        collection = kind.collection

        masters, overrides, customs, hidden = await asyncio.gather(
            self.store.find(collection, {**base, "scope": Scope.MASTER.value, "is_archived": NOT_ARCHIVED}, sort=sort),
            self.store.find(collection, {**base, "scope": Scope.OVERRIDE.value, "household_id": household_id,
                                         "is_archived": NOT_ARCHIVED}, sort=sort),
            self.store.find(collection, {**base, "scope": Scope.HOUSEHOLD.value, "household_id": household_id,
                                         "is_archived": NOT_ARCHIVED}, sort=sort),
            self.hidden_master_ids(household_id, kind),
        )

        model = kind.model
        overrides_by_master = {doc["master_id"]: doc for doc in overrides if doc.get("master_id")}
        resolved: List[CatalogEntity] = []
        for master in masters:
            if master["_id"] in hidden:
                continue
            resolved.append(model.from_dict(overrides_by_master.get(master["_id"], master)))
        resolved.extend(model.from_dict(doc) for doc in customs)
        return resolved

    async def hidden_master_ids(self, household_id: str, kind: KindLike) -> Set[str]:
        docs = await self.store.find(HIDDEN_MASTERS, {"household_id": household_id, "type": as_kind(kind).value})
        return {doc["master_id"] for doc in docs}

    async def find_visible(self, kind: KindLike, household_id: str, entity_id: str) -> Optional[CatalogEntity]:
        '''The entity when it is part of the household view (by id, or by the master id it overrides).'''
        if not entity_id:
            return None
        for entity in await self.resolve_catalog(kind, household_id):
            if entity.id == entity_id or entity.identity == entity_id:
                return entity
        return None

    async def get_master(self, kind: KindLike, master_id: str) -> Optional[CatalogEntity]:
        kind = as_kind(kind)
        doc = await self.store.find_one(kind.collection, {
            "_id": master_id, "scope": Scope.MASTER.value, "is_archived": NOT_ARCHIVED
        })
        return kind.model.from_dict(doc) if doc else None

    # -------------------- Hide / unhide --------------------
    async def hide_master(self, household_id: str, kind: KindLike, master_id: str) -> None:
        '''Idempotent: hiding an already hidden master is a no-op.'''
        kind = as_kind(kind)
        household_id = require_household(household_id)
        key = {"household_id": household_id, "type": kind.value, "master_id": master_id}
        if await self.store.find_one(HIDDEN_MASTERS, key):
            logger.debug("Master %s already hidden for household %s", master_id, household_id)
            return
        marker = HiddenMaster(household_id=household_id, type=kind, master_id=master_id)
        try:
            await self.store.create(HIDDEN_MASTERS, marker.to_dict())
        except DuplicateKeyError:
            logger.debug("Concurrent hide of master %s for household %s", master_id, household_id)
            return
        logger.info("Hid %s master %s for household %s", kind.value, master_id, household_id)
        publish_master_hidden(household_id, kind, master_id, bus=self.bus)

    async def unhide_master(self, household_id: str, kind: KindLike, master_id: str) -> None:
        kind = as_kind(kind)
        household_id = require_household(household_id)
        removed = await self.store.delete_many(HIDDEN_MASTERS, {
            "household_id": household_id, "type": kind.value, "master_id": master_id
        })
        if removed:
            logger.info("Unhid %s master %s for household %s", kind.value, master_id, household_id)
            publish_master_unhidden(household_id, kind, master_id, bus=self.bus)

    # -------------------- Writes --------------------
    async def create_master(self, kind: KindLike, data: Mapping[str, Any]) -> CatalogEntity:
        '''Seed a shared master entity (global administration path).'''
        kind = as_kind(kind)
        entity = kind.model(**{**dict(data), "scope": Scope.MASTER, "household_id": None, "master_id": None})
        doc = await self.store.create(kind.collection, entity.to_dict())
        logger.info("Created %s master %s (%s)", kind.value, doc["_id"], entity.name)
        return kind.model.from_dict(doc)

    async def create_custom(self, kind: KindLike, household_id: str, data: Mapping[str, Any]) -> CatalogEntity:
        kind = as_kind(kind)
        household_id = require_household(household_id)
        entity = kind.model(**{**dict(data), "scope": Scope.HOUSEHOLD, "household_id": household_id,
                               "master_id": None})
        doc = await self.store.create(kind.collection, entity.to_dict())
        logger.info("Created %s %s for household %s", kind.value, doc["_id"], household_id)
        return kind.model.from_dict(doc)

    async def save_entity(self, entity: CatalogEntity) -> CatalogEntity:
        doc = await self.store.save(entity.kind.collection, entity.to_dict())
        return entity.kind.model.from_dict(doc)

    async def save_override(self, kind: KindLike, household_id: str, master_id: str,
                            changes: Mapping[str, Any]) -> Tuple[CatalogEntity, bool]:
        """Create or update the household's override of a master.

        The first edit copies the master's fields; later edits update the same
        override. Saving an override always clears a hide on that master.
        """
        kind = as_kind(kind)
        household_id = require_household(household_id)
        master = await self.get_master(kind, master_id)
        if master is None:
            raise EntityNotFoundError(f"{kind.value} master {master_id} not found")

        entity, created = await self._upsert_override(kind, household_id, master, changes)
        await self.unhide_master(household_id, kind, master_id)
        logger.info("%s override %s of master %s for household %s",
                    "Created" if created else "Updated", entity.id, master_id, household_id)
        publish_override_saved(household_id, kind, master_id, entity.id, created, bus=self.bus)
        return entity, created

    async def _find_override_doc(self, kind: CatalogKind, household_id: str, master_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.find_one(kind.collection, {
            "scope": Scope.OVERRIDE.value, "household_id": household_id,
            "master_id": master_id, "is_archived": NOT_ARCHIVED,
        })

    async def _update_override(self, kind: CatalogKind, doc: Dict[str, Any], changes: Mapping[str, Any]) -> CatalogEntity:
        current = kind.model.from_dict(doc)
        updated = kind.model(**{**current.model_dump(), **dict(changes),
                                "scope": Scope.OVERRIDE, "household_id": current.household_id,
                                "master_id": current.master_id, "is_archived": False})
        return await self.save_entity(updated)

    async def _upsert_override(self, kind: CatalogKind, household_id: str, master: CatalogEntity,
                               changes: Mapping[str, Any]) -> Tuple[CatalogEntity, bool]:
        existing = await self._find_override_doc(kind, household_id, master.id)
        if existing:
            return await self._update_override(kind, existing, changes), False

        override = kind.model(**{**master.content_fields(), **dict(changes),
                                 "scope": Scope.OVERRIDE, "household_id": household_id,
                                 "master_id": master.id, "is_archived": False})
        try:
            doc = await self.store.create(kind.collection, override.to_dict())
        except DuplicateKeyError:
            logger.warning("Lost override creation race for master %s in household %s", master.id, household_id)
            winner = await self._find_override_doc(kind, household_id, master.id)
            if winner is None:
                raise
            return await self._update_override(kind, winner, changes), False
        return kind.model.from_dict(doc), True

    async def remove_from_household(self, kind: KindLike, household_id: str, entity_id: str) -> str:
        """Delete path. Masters are hidden, overrides archived (and their master
        hidden), household customs archived. Returns "hidden" or "archived"."""
        kind = as_kind(kind)
        household_id = require_household(household_id)
        doc = await self.store.find_one(kind.collection, {"_id": entity_id, "is_archived": NOT_ARCHIVED})
        if doc is None:
            raise EntityNotFoundError(f"{kind.value} {entity_id} not found")
        entity = kind.model.from_dict(doc)

        if entity.is_master:
            await self.hide_master(household_id, kind, entity.id)
            return "hidden"
        if entity.household_id != household_id:
            raise EntityNotFoundError(f"{kind.value} {entity_id} not found")
        entity.is_archived = True
        await self.save_entity(entity)
        logger.info("Archived %s %s for household %s", kind.value, entity.id, household_id)
        if entity.is_override:
            await self.hide_master(household_id, kind, entity.master_id)
        return "archived"

    async def archive_master(self, kind: KindLike, master_id: str) -> None:
        '''Retire a master for every household.'''
        master = await self.get_master(kind, master_id)
        if master is None:
            raise EntityNotFoundError(f"{as_kind(kind).value} master {master_id} not found")
        master.is_archived = True
        await self.save_entity(master)
        logger.info("Archived %s master %s", master.kind.value, master_id)


__all__ = ["ScopeResolver", "as_kind", "DEFAULT_SORT", "NOT_ARCHIVED"]
