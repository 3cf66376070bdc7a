"""
db/ - Database Layer
====================
Handles the PostgreSQL connections, schema initialization, the shared
key-value store and the LISTEN/NOTIFY channels used for cross-process sync.
In-memory counterparts of the store and channels live next to them.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
