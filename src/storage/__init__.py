"""Record store boundary for milestones, goals, and correlations."""
