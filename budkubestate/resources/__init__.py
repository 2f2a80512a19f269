"""Resource object models handed to the projection engine."""
