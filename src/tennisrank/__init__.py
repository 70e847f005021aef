"""
tennisrank - Historical Tennis Ranking Engine

Computes weekly rankings for a professional tennis league from its
tournament editions and matches, under configurable rulesets.

Main components:
- db: SQLAlchemy models and per-league session management
- ranking: scoring catalog, tournament graph, eligibility, aggregation
  and the resumable weekly batch driver
- tasks: run locking for batch jobs
- web: FastAPI JSON endpoints
"""

__version__ = "1.0.0"
