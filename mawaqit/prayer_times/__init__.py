"""Prayer times module — daily timetables per section."""
