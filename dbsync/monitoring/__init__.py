"""
Run reporting
"""
