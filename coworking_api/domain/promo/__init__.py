"""Promo domain - Single promo code, QR tracking and marketing content"""
