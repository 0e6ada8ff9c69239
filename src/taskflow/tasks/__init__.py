"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, TaskFilter, TaskSort)
- task_store.py: in-memory collection mirrored to a JSON blob
- task_view.py: filtered/sorted projections and counters
- alarm.py: alarm evaluator + alarm session (dismiss/snooze/complete)
- alarm_scheduler.py: polling loop and the background event loop thread
- task_api.py: parsing/formatting helpers used by commands
"""
