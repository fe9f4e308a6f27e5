"""Role-based registry of partnership conventions."""
