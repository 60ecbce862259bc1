"""awsnuke - discover and destroy AWS resources across regions and resource types."""

__version__ = "0.1.0"
