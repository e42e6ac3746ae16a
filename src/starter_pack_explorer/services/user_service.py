"""User detail lookups."""

from motor.motor_asyncio import AsyncIOMotorCollection

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.models.pack_models import UserDetail
from starter_pack_explorer.services.exceptions import UserNotFoundError
from starter_pack_explorer.services.query_builder import active_user_clause
from starter_pack_explorer.services.relationship_joiner import RelationshipJoiner
from starter_pack_explorer.services.store import run_store_operation
from starter_pack_explorer.services.tombstone import resolve_user

logger = get_logger(prefix="[USERS]")


class UserService:
    def __init__(self, packs: AsyncIOMotorCollection, users: AsyncIOMotorCollection):
        self.packs = packs
        self.users = users
        self.joiner = RelationshipJoiner(packs, users)

    async def get_user(self, did: str, include_deleted_packs: bool = False) -> UserDetail:
        """
        Fetch one user by `did` with `member_packs` and `created_packs` attached.

        Users hidden from search by the soft-delete clause are reported as not found.

        Args:
            did: The user's stable identifier.
            include_deleted_packs: Also list tombstoned packs (with resolved names).

        Raises:
            UserNotFoundError: No visible user has this `did`.
        """
        query = {"$and": [{"did": did}, active_user_clause()]}
        user = await run_store_operation(
            self.users.find_one(query, {"_id": 0}), "find_one", settings.USERS_COLLECTION, query
        )
        if user is None:
            logger.info("User not found: %s", did)
            raise UserNotFoundError(did)

        enriched = await self.joiner.attach_user_packs([resolve_user(user)], include_deleted=include_deleted_packs)
        return UserDetail.model_validate(enriched[0])
