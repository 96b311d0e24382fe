"""famcal - shared family calendar with reminders and daily checklists."""
