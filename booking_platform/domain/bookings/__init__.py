"""Booking lifecycle: creation, status changes, reschedules and live-session access"""
