"""Crewboard backend: workspaces, projects, tasks and assignment recommendations."""
