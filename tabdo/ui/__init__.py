"""
FILE: tabdo/ui/__init__.py
PURPOSE: Full-screen keyboard UI (focus tree, editor, controller, rendering)
"""
