"""Career assessment scoring: question bank, engine and leveling."""
