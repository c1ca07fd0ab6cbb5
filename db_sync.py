#!/usr/bin/env python3
"""
Database Sync - copies the content collections from REMOTE_URI into LOCAL_URI
Usage: python db_sync.py [--direct] [--sequential] [--skip-verification]
"""
from dbsync.cli import run

if __name__ == "__main__":
    run()
