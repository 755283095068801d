"""Booking domain - Reservations, pricing, availability and cancellation"""
