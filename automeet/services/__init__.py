"""Domain services: prediction, participants, notifications and the meeting workflow."""
