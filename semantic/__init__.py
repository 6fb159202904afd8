"""
Semantic audit package.
Compares a design snapshot with a rendered page snapshot.
"""
