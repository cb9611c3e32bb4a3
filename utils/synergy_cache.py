"""
Service-layer caching for pair synergy lookups.

The optimizer scores thousands of neighbor states per run and every state
re-sums the synergy of each pair in every group, so the same archetype/role
pairs are evaluated over and over. The domain calculator stays pure; the
memoization lives here.

Thread-safety: Uses a lock to prevent cache corruption during parallel test
execution with pytest-xdist.
"""

import threading
from functools import lru_cache

from domain.models.player import Archetype, Player, Role
from domain.services.synergy_service import pair_synergy

# Lock to protect cache operations during parallel execution
_cache_lock = threading.Lock()

PlayerKey = tuple[Archetype | None, Role | None]


@lru_cache(maxsize=1024)
def _compute_cached_pair_synergy(key_a: PlayerKey, key_b: PlayerKey) -> int:
    """
    Internal cached computation. Protected by _cache_lock in public wrapper.
    """
    # Synergy depends only on archetype and role, so stand-in players suffice
    a = Player(id="a", name="a", archetype=key_a[0], role=key_a[1])
    b = Player(id="b", name="b", archetype=key_b[0], role=key_b[1])
    return pair_synergy(a, b)


def _synergy_key(player: Player) -> PlayerKey:
    return (player.archetype, player.role)


def get_cached_pair_synergy(a: Player, b: Player) -> int:
    """
    Pair synergy for two players, memoized on their archetypes and roles.

    Drop-in replacement for pair_synergy wherever a PairSynergyFn is accepted.

    Thread-safe: Uses a lock to prevent cache corruption during parallel execution.
    """
    with _cache_lock:
        return _compute_cached_pair_synergy(_synergy_key(a), _synergy_key(b))


def clear_synergy_cache() -> None:
    """Clear the synergy cache. Useful for testing."""
    with _cache_lock:
        _compute_cached_pair_synergy.cache_clear()


def get_cache_info():
    """Get cache statistics. Useful for monitoring/debugging."""
    with _cache_lock:
        return _compute_cached_pair_synergy.cache_info()
