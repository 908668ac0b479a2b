"""Client side of a PvP match: lobby HTTP client, poller and match runner."""
