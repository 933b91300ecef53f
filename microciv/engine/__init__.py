"""
MicroCiv Turn-Based Simulation Engine
Core engine without web framework or UI
"""

# Resources tracked in the ledger, in display order
RESOURCE_TYPES = ("food", "wood", "stone", "science")

# Resources raiders steal, events discover and merchants trade
MATERIAL_RESOURCES = ("food", "wood", "stone")

# Oldest entries are evicted once the log is full
EVENT_LOG_LIMIT = 10
