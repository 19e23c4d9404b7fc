"""Long-running workers.

- host: runs the due-date scanner and reminder consumers in one process
"""
