"""AWS resource type adapters.

Each adapter lists candidates for one resource type and deletes them by
identifier, on top of the shared behaviour in BaseAwsResource.
"""
