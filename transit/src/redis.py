from redis import Redis

from transit.src.search import RedisRecentSearches
from transit.src.constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD

# Redis client, connections are opened lazily on first command
redisClient = Redis(
    host=REDIS_HOST,
    port=REDIS_PORT,
    password=REDIS_PASSWORD,
    decode_responses=True,
)


def recentSearches(account_id: int) -> RedisRecentSearches:
    """
    Recent searches store of a signed-in account.

    Args:
        account_id (int): Owner of the list.

    Returns:
        RedisRecentSearches: Store bound to the shared client.
    """
    return RedisRecentSearches(redisClient, account_id)
