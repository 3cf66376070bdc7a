"""
repositories/ - Data Access Layer
==================================
The persistent store adapter serializes whole collections to the shared
key-value store; one DatasetRepository per collection owns its in-memory
records and writes every mutation through to that store.
"""
