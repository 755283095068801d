"""Spaces domain - Bookable coworking spaces"""
