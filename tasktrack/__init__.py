"""TaskTrack API: user accounts, JWT sessions and per-user task records."""
