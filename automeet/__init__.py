"""
AutoMeet meeting-scheduling backend.

Stores users and meetings, predicts per-participant attendance with a
remote ML model, and emails participants when meetings are created or
rescheduled.
"""
