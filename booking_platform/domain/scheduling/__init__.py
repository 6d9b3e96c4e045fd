"""Interval arithmetic and slot generation"""
