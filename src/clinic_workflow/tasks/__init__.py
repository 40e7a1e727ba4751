"""
Task subsystem.

Components:
- task_models.py: data structures (TaskRecord, Stage, intake/completion reports)
- task_errors.py: error kinds raised by the stores and the controller
- task_store.py: the two SQLite stores (Basic, Detail) and the TaskStore combining them
- identity.py: monotonic task id allocator
- lifecycle.py: stage rules, write-through to both stores, the manager lock
- tokens.py: confirmation tokens and link helpers
- inspection.py: check-state interpretation
"""
