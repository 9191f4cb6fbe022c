"""Poll cycle: change detection, snapshot persistence and orchestration."""
