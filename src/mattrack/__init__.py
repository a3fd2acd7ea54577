"""
MatTrack - BJJ tournament and gym aggregation.

Pulls tournament, gym and roster data from two federations (JJWL and
IBJJF) that describe the same physical gyms under different identifiers
and spellings, and resolves them into one canonical gym identity.

Main components:
- gyms: Name normalization, similarity scoring and cross-federation matching
- services: Gym sync orchestration and rate-limited roster refresh
- db: SQLAlchemy models and stores
- fetchers: Federation fetcher contract
- tasks: Scheduled job stages and the bounded-concurrency batch runner
"""

__version__ = "1.0.0"
