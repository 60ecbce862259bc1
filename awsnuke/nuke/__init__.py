"""Resource nuke engine.

This module discovers eligible resources per type and region and deletes them
in bounded, possibly concurrent batches, reporting partial failures.

Classes:
    NukeableResource: Capability contract every resource type implements
    BatchDriver: Drives deletion of identifiers in size-bounded batches
    NukeOrchestrator: Walks regions and resource types in registry order
    ReportCollector: Streams found/deleted/error events to renderers
    AuditStorage: Audit log storage and retrieval
"""
