"""
Monotonic numeric ids for MongoDB documents.
"""
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from studyws.database.databases import auth_db


async def next_sequence(db: AsyncIOMotorDatabase, name: str) -> int:
    """
    Allocate the next value of a named counter.

    Runs outside any caller transaction so concurrent flows do not conflict
    on the counter document; an aborted flow simply leaves a gap.
    """
    counter = await db[auth_db.Collections.COUNTERS].find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["seq"])
