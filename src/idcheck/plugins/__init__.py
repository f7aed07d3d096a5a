"""Collaborators of the dispatch core: service clients, sinks, sources."""
