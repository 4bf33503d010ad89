"""Pass-through collaborators: artifact cleanup and external dev tools."""
