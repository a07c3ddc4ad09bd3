"""gorgonlog - incremental ingestion of Project Gorgon player logs."""

__version__ = "0.1.0"
