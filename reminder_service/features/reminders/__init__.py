"""Overdue-task reminder pipeline: message contract, scanner and consumer."""
