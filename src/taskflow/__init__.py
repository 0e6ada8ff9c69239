"""TaskFlow: personal tasks with due-date alarms and an AI planning assistant."""

__version__ = "0.1.0"
