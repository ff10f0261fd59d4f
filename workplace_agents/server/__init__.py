"""HTTP services: one per agent process, plus the coordinator."""
