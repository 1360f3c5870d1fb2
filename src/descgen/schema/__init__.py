"""Schema model and descriptor set loading."""
