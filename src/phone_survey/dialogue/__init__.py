"""
Answer analysis and voice text helpers.

Keep import side-effect free: submodules are imported where used.
"""
