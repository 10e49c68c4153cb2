"""Personal finance tracker core."""
