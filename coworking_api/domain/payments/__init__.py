"""Payments domain - Stripe deposit holds, refunds and webhooks"""
