"""
Terminal front-end for skilltree.
"""
