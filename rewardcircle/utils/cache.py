"""
Process cache for RewardCircle (Flask-Caching).

Only derived lookups live here (tenant roles). Nothing read from the cache
is authoritative: every entry can be dropped and recomputed from the
database at any time, and writes to the source evict the entry.

REDIS_URL selects a shared Redis cache; without it, or when Redis does not
answer at startup, each process keeps its own SimpleCache.
"""
import logging

import redis
from flask_caching import Cache

logger = logging.getLogger(__name__)

cache = Cache()

DEFAULT_TIMEOUT = 300
KEY_PREFIX = 'rewardcircle:'


def _redis_reachable(url: str) -> bool:
    try:
        redis.from_url(url, socket_connect_timeout=2).ping()
    except redis.RedisError as e:
        logger.warning('Redis at %s unreachable (%s); falling back to SimpleCache', url.split('@')[-1], e)
        return False
    return True


def init_cache(app) -> str:
    """
    Bind ``cache`` to the app and return the backend type chosen.

    Tests always get SimpleCache so they never touch a shared server.
    """
    redis_url = app.config.get('REDIS_URL')
    app.config.setdefault('CACHE_DEFAULT_TIMEOUT', DEFAULT_TIMEOUT)

    if redis_url and not app.config.get('TESTING') and _redis_reachable(redis_url):
        app.config.update(
            CACHE_TYPE='RedisCache',
            CACHE_REDIS_URL=redis_url,
            CACHE_KEY_PREFIX=KEY_PREFIX,
        )
    else:
        app.config['CACHE_TYPE'] = 'SimpleCache'

    cache.init_app(app)
    logger.info('Cache backend: %s', app.config['CACHE_TYPE'])
    return app.config['CACHE_TYPE']


def cache_key(namespace: str, **parts) -> str:
    """
    ``cache_key('role', tenant_id=3, user_id='u1')`` -> ``'role:tenant_id=3:user_id=u1'``
    """
    return ':'.join([namespace] + [f'{k}={v}' for k, v in sorted(parts.items())])
