"""Platform infrastructure shared by all agents."""
