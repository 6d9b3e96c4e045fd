"""Account lookups shared by every scheduling domain"""
