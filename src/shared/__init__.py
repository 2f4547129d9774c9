"""
Shared Layer - Cross-Cutting Concerns
Logging, error contract, database/redis clients and health probes.
"""
