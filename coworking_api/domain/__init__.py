"""Domain-driven design modules"""
