"""Subscription group sessions fanned out into per-subscriber bookings"""
