"""
Core building blocks: errors, subprocesses, concurrency and database access
"""
