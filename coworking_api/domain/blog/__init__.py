"""Blog domain - Articles and categories"""
