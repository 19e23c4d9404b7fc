"""Overdue-task reminder service.

A due-date scanner publishes one reminder per overdue task to a durable
RabbitMQ queue; reminder consumers drain the queue with manual
acknowledgment.
"""

__version__ = "0.1.0"
