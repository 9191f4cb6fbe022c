"""SharePoint document library watcher for Azure Functions."""

__version__ = "0.1.0"
