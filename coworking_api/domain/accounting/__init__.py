"""Accounting domain - Daily turnovers, B2B revenues and consolidated exports"""
